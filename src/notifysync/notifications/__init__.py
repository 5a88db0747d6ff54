"""Notification wire models and recipient filtering."""

from notifysync.notifications.filters import RecipientFilter
from notifysync.notifications.models import BroadcastEvent, Delivery, NotificationPayload

__all__ = [
    "BroadcastEvent",
    "Delivery",
    "NotificationPayload",
    "RecipientFilter",
]
