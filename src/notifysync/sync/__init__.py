"""Session-wide notification state: counter, feed, read marking."""

from notifysync.sync.counter import UnreadCounter
from notifysync.sync.feed import NotificationFeedStore
from notifysync.sync.marker import MarkReadResult, ReadStateMarker
from notifysync.sync.session import NotificationSession
from notifysync.sync.state import DrawerStateFlag

__all__ = [
    "DrawerStateFlag",
    "MarkReadResult",
    "NotificationFeedStore",
    "NotificationSession",
    "ReadStateMarker",
    "UnreadCounter",
]
