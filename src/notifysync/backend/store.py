"""In-memory notification record store standing in for the real backend."""

from __future__ import annotations

import itertools
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Iterable

from notifysync.core.types import SessionUser
from notifysync.notifications.models import BroadcastEvent, Delivery, NotificationPayload


class BackendFailure(Exception):
    """Injected failure; the mock app answers it with HTTP 500."""


class MockNotificationBackend:
    """Per-user deliveries with idempotent read marking.

    ``publish`` plays the moderation workflow: it creates one notification,
    one delivery per registered user holding any of the target roles, and
    returns the ``{role, data}`` event a collaborator would broadcast.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._users: dict[str, SessionUser] = {}
        self._deliveries: dict[tuple[str, str], Delivery] = {}
        self._ids = itertools.count(1)
        self._clock = start or datetime(2025, 1, 1, tzinfo=timezone.utc)
        self._failures: Counter[str] = Counter()
        self.mark_read_calls: list[list[str]] = []
        self.list_calls = 0
        self.count_calls = 0

    # -- users ---------------------------------------------------------------

    def register_user(self, user: SessionUser) -> SessionUser:
        if not user.token:
            raise ValueError(f"User {user.user_id!r} needs a token to authenticate")
        self._users[user.token] = user
        return user

    def user_for_token(self, token: str) -> SessionUser | None:
        return self._users.get(token)

    # -- workflow side -------------------------------------------------------

    def publish(
        self,
        message: str,
        roles: Iterable[str],
        *,
        image: str | None = None,
        redirect_url: str | None = None,
        created_at: datetime | None = None,
    ) -> BroadcastEvent:
        roles = list(roles)
        notification_id = str(next(self._ids))
        if created_at is None:
            self._clock += timedelta(minutes=1)
            created_at = self._clock
        payload = NotificationPayload(message=message, image=image, redirect_url=redirect_url)

        data: list[Delivery] = []
        for user in self._users.values():
            if user.role not in roles:
                continue
            delivery = Delivery(
                notification_id=notification_id,
                user_id=user.user_id,
                created_at=created_at,
                Notification=payload,
            )
            self._deliveries[(notification_id, user.user_id)] = delivery
            data.append(delivery)
        return BroadcastEvent(role=tuple(roles), data=tuple(data))

    def fail_next(self, operation: str, times: int = 1) -> None:
        """Make the next ``times`` calls of ``list``, ``count`` or ``mark_read`` fail."""
        self._failures[operation] += times

    def _maybe_fail(self, operation: str) -> None:
        if self._failures[operation] > 0:
            self._failures[operation] -= 1
            raise BackendFailure(f"Injected {operation} failure")

    # -- endpoint side -------------------------------------------------------

    def list_for_user(self, user_id: str) -> list[Delivery]:
        self.list_calls += 1
        self._maybe_fail("list")
        rows = [d for (_, uid), d in self._deliveries.items() if uid == user_id]
        return sorted(rows, key=lambda d: d.sort_key, reverse=True)

    def unread_count(self, user_id: str) -> int:
        self.count_calls += 1
        self._maybe_fail("count")
        return sum(
            1 for (_, uid), d in self._deliveries.items() if uid == user_id and not d.is_read
        )

    def mark_read(self, user_id: str, notification_ids: Iterable[str]) -> int:
        ids = [str(i) for i in notification_ids]
        self.mark_read_calls.append(ids)
        self._maybe_fail("mark_read")
        changed = 0
        for notification_id in ids:
            key = (notification_id, user_id)
            delivery = self._deliveries.get(key)
            if delivery is not None and not delivery.is_read:
                self._deliveries[key] = delivery.as_read()
                changed += 1
        return changed

    def is_read(self, user_id: str, notification_id: str) -> bool:
        delivery = self._deliveries.get((notification_id, user_id))
        return bool(delivery and delivery.is_read)
