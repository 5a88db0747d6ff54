"""Session-wide unread counter reconciled from REST counts and push events."""

from __future__ import annotations

import logging
from typing import Iterable

from notifysync.api.client import NotificationApiClient, NotificationApiError
from notifysync.notifications.models import Delivery
from notifysync.sync.observable import Observable
from notifysync.sync.state import DrawerStateFlag

logger = logging.getLogger(__name__)


class UnreadCounter(Observable[int]):
    """Single source of truth for the badge count.

    ``hydrate`` overwrites the value with the backend's count. Broadcasts
    add to it only while the drawer is closed, and only for notification ids
    this session has not seen before, so a re-delivered event counts once.
    """

    def __init__(self, api: NotificationApiClient, drawer: DrawerStateFlag) -> None:
        super().__init__()
        self._api = api
        self._drawer = drawer
        self._value = 0
        self._seen: set[str] = set()

    @property
    def value(self) -> int:
        return self._value

    def set(self, value: int) -> None:
        value = max(0, int(value))
        if value == self._value:
            return
        self._value = value
        self._notify(value)

    def reset(self) -> None:
        self.set(0)

    def increment(self, amount: int = 1) -> None:
        if amount > 0:
            self.set(self._value + amount)

    def note_seen(self, notification_ids: Iterable[str]) -> None:
        self._seen.update(notification_ids)

    def has_seen(self, notification_id: str) -> bool:
        return notification_id in self._seen

    async def hydrate(self) -> bool:
        """Replace the value with the backend's unread count.

        Returns False, keeping the last known value, when the request fails.
        """
        try:
            count = await self._api.unread_count()
        except NotificationApiError as exc:
            logger.warning("Unread count refresh failed, keeping %d: %s", self._value, exc)
            return False
        self.set(count)
        return True

    def on_broadcast(self, matches: list[Delivery]) -> int:
        """Count the user's deliveries from one broadcast; returns the increment applied."""
        fresh = [d.notification_id for d in matches if d.notification_id not in self._seen]
        self._seen.update(fresh)
        if not fresh or self._drawer.is_open:
            return 0
        self.increment(len(fresh))
        return len(fresh)
