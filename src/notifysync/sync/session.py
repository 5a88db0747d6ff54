"""Session-scoped owner of the notification stores.

One :class:`NotificationSession` is built when a user signs in and closed at
logout. Every surface (header badge, admin badge, drawer) reads the same
counter and feed through it, and the push channel has exactly one
subscriber: the session's ingestion handler, which applies the recipient
filter once and then updates the counter and the feed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from notifysync.api.client import NotificationApiClient
from notifysync.core.config import Settings
from notifysync.core.tasks import BackgroundTasks
from notifysync.core.types import DrawerState, SessionUser
from notifysync.notifications.filters import RecipientFilter
from notifysync.notifications.models import BroadcastEvent, Delivery
from notifysync.push.channel import PushChannel, create_push_channel
from notifysync.sync.counter import UnreadCounter
from notifysync.sync.feed import NotificationFeedStore
from notifysync.sync.marker import MarkReadResult, ReadStateMarker
from notifysync.sync.state import DrawerStateFlag

logger = logging.getLogger(__name__)


class NotificationSession:
    """Wires the push channel, REST client and stores for one signed-in user."""

    def __init__(
        self,
        user: SessionUser,
        settings: Settings | None = None,
        *,
        api: NotificationApiClient | None = None,
        channel: PushChannel | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.user = user

        if api is None:
            api_config = self.settings.api
            if user.token and not api_config.auth_token:
                api_config = api_config.model_copy(update={"auth_token": user.token})
            api = NotificationApiClient(api_config)
        if channel is None:
            push_config = self.settings.push
            if user.token and not push_config.auth_token:
                push_config = push_config.model_copy(update={"auth_token": user.token})
            channel = create_push_channel(push_config)

        self.api = api
        self.channel = channel
        self.tasks = BackgroundTasks(f"session:{user.user_id}")
        self.filter = RecipientFilter(user)
        self.drawer = DrawerStateFlag()
        self.counter = UnreadCounter(api, self.drawer)
        self.marker = ReadStateMarker(api)
        self.feed = NotificationFeedStore(
            api, self.marker, self.counter, self.drawer, tasks=self.tasks
        )

        self._unsubscribers: list[Callable[[], None]] = []
        self._resync_task: asyncio.Task[None] | None = None
        self._lost_connection = False
        self._started = False
        self._closed = False

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to the push channel, connect it and begin periodic resync."""
        if self._started:
            return
        self._started = True
        self._unsubscribers.append(self.channel.subscribe(self._on_broadcast))
        self._unsubscribers.append(self.channel.subscribe_connection(self._on_connection))
        await self.channel.connect()

        interval = self.settings.sync.resync_interval_seconds
        if interval > 0:
            self._resync_task = asyncio.get_running_loop().create_task(
                self._resync_loop(interval)
            )
        logger.info("Notification session started for user %s", self.user.user_id)

    async def close(self) -> None:
        """Tear the session down at logout. Pending requests are allowed to finish."""
        if self._closed:
            return
        self._closed = True
        if self._resync_task is not None:
            self._resync_task.cancel()
            try:
                await self._resync_task
            except asyncio.CancelledError:
                pass
            self._resync_task = None
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        await self.channel.disconnect()
        await self.tasks.drain()
        await self.api.close()
        logger.info("Notification session closed for user %s", self.user.user_id)

    async def __aenter__(self) -> NotificationSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    # -- surface intents -----------------------------------------------------

    @property
    def drawer_state(self) -> DrawerState:
        return self.drawer.state

    async def open_drawer(self) -> tuple[Delivery, ...]:
        self.drawer.open()
        return await self.feed.load()

    def close_drawer(self) -> None:
        self.drawer.close()

    async def hydrate(self) -> bool:
        return await self.counter.hydrate()

    async def resync(self) -> bool:
        """Retry pending mark-read ids, then refresh the count from the backend.

        While the drawer is open the count stays at whatever the feed set it
        to; everything on screen is already being marked read.
        """
        if self.marker.has_pending:
            await self.marker.flush()
        if self.drawer.is_open:
            return False
        return await self.counter.hydrate()

    async def mark_read(self, notification_ids: list[str]) -> MarkReadResult:
        return await self.marker.mark_read(notification_ids)

    # -- ingestion -----------------------------------------------------------

    def _on_broadcast(self, event: BroadcastEvent) -> None:
        matches = self.filter.matching(event)
        if not matches:
            return
        self.counter.on_broadcast(matches)
        self.feed.on_broadcast(matches)
        if not self.drawer.is_open and self.marker.has_pending:
            self.tasks.spawn(self.marker.flush())

    def _on_connection(self, connected: bool) -> None:
        if not connected:
            self._lost_connection = True
        elif self._lost_connection:
            self._lost_connection = False
            logger.info("Push channel reconnected, resyncing unread count")
            self.tasks.spawn(self.resync())

    async def _resync_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.resync()
            except Exception:
                logger.exception("Periodic resync failed")
