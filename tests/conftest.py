"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Iterable

import httpx
import pytest

from notifysync.api.client import NotificationApiClient, NotificationApiError
from notifysync.backend.app import create_app
from notifysync.backend.store import MockNotificationBackend
from notifysync.core.config import ApiConfig, PushConfig, Settings, SyncConfig
from notifysync.core.types import SessionUser
from notifysync.notifications.models import Delivery
from notifysync.push.providers.local import LocalPushChannel


BASE_TIME = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

OWNER = SessionUser(user_id="u1", role="business_owner", token="owner-token")
OTHER_OWNER = SessionUser(user_id="u2", role="business_owner", token="other-token")
ADMIN = SessionUser(user_id="a1", role="admin", token="admin-token")


def make_delivery(
    notification_id: str | int,
    *,
    user_id: str = "u1",
    is_read: bool = False,
    minute: int | None = 0,
    message: str | None = None,
    redirect_url: str | None = None,
) -> Delivery:
    """Build a delivery whose ``created_at`` is ``BASE_TIME + minute`` (None for no timestamp)."""
    return Delivery(
        notification_id=str(notification_id),
        user_id=user_id,
        is_read=is_read,
        created_at=None if minute is None else BASE_TIME + timedelta(minutes=minute),
        Notification={
            "message": message or f"Notification {notification_id}",
            "redirect_url": redirect_url,
        },
    )


def broadcast(*deliveries: Delivery, roles: Iterable[str] = ("business_owner",)) -> dict:
    """Raw push payload in the wire shape ``{role, data}``."""
    return {
        "role": list(roles),
        "data": [d.model_dump(mode="json", by_alias=True) for d in deliveries],
    }


def make_settings(resync_interval_seconds: float = 0) -> Settings:
    return Settings(
        api=ApiConfig(base_url="http://backend.test", max_retries=0),
        push=PushConfig(provider="local"),
        sync=SyncConfig(resync_interval_seconds=resync_interval_seconds),
    )


class FakeApi:
    """Scriptable stand-in for NotificationApiClient.

    Setting a gate (``asyncio.Event``) holds the matching call until the test
    sets it, which lets tests interleave broadcasts with in-flight requests.
    """

    def __init__(self, records: list[Delivery] | None = None, count: int = 0) -> None:
        self.records = list(records or [])
        self.count = count
        self.list_calls = 0
        self.count_calls = 0
        self.mark_calls: list[list[str]] = []
        self.fail_list = 0
        self.fail_count = 0
        self.fail_mark = 0
        self.list_gate: asyncio.Event | None = None
        self.mark_gate: asyncio.Event | None = None
        self.closed = False

    async def list_notifications(self) -> list[Delivery]:
        self.list_calls += 1
        snapshot = list(self.records)
        if self.list_gate is not None:
            await self.list_gate.wait()
        if self.fail_list:
            self.fail_list -= 1
            raise NotificationApiError("list failed", status_code=500)
        return snapshot

    async def unread_count(self) -> int:
        self.count_calls += 1
        if self.fail_count:
            self.fail_count -= 1
            raise NotificationApiError("count failed", status_code=500)
        return self.count

    async def mark_read(self, notification_ids: Iterable[str]) -> None:
        ids = list(notification_ids)
        self.mark_calls.append(ids)
        if self.mark_gate is not None:
            await self.mark_gate.wait()
        if self.fail_mark:
            self.fail_mark -= 1
            raise NotificationApiError("mark failed", status_code=500)
        self.records = [d.as_read() if d.notification_id in ids else d for d in self.records]

    async def close(self) -> None:
        self.closed = True


async def settle() -> None:
    """Let spawned tasks run until the loop is idle for a few turns."""
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.fixture
def backend() -> MockNotificationBackend:
    store = MockNotificationBackend()
    for user in (OWNER, OTHER_OWNER, ADMIN):
        store.register_user(user)
    return store


def backend_client(backend: MockNotificationBackend, user: SessionUser) -> NotificationApiClient:
    """API client wired to the mock FastAPI backend through ASGI, no network."""
    config = ApiConfig(base_url="http://backend.test", auth_token=user.token, max_retries=0)
    return NotificationApiClient(config, transport=httpx.ASGITransport(app=create_app(backend)))


def local_channel() -> LocalPushChannel:
    return LocalPushChannel(PushConfig(provider="local"))
