"""REST client for the notification backend."""

from notifysync.api.client import NotificationApiClient, NotificationApiError, UnauthorizedError

__all__ = ["NotificationApiClient", "NotificationApiError", "UnauthorizedError"]
