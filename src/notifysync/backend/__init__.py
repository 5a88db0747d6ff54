"""In-memory stand-in for the notification backend, for tests and demos."""

from notifysync.backend.app import create_app
from notifysync.backend.store import BackendFailure, MockNotificationBackend

__all__ = ["BackendFailure", "MockNotificationBackend", "create_app"]
