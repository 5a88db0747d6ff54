"""Ordered notification history shown in the drawer."""

from __future__ import annotations

import asyncio
import logging

from notifysync.api.client import NotificationApiClient, NotificationApiError
from notifysync.core.tasks import BackgroundTasks
from notifysync.notifications.models import Delivery
from notifysync.sync.counter import UnreadCounter
from notifysync.sync.marker import ReadStateMarker
from notifysync.sync.observable import Observable
from notifysync.sync.state import DrawerStateFlag

logger = logging.getLogger(__name__)


class NotificationFeedStore(Observable[tuple[Delivery, ...]]):
    """Merges fetched history with live broadcasts, newest first.

    Fetch vs. push: broadcasts that arrive while a :meth:`load` is fetching
    are buffered from the moment ``load`` is called, whatever the drawer
    state, and replayed on top of the fetched list once it replaces the old
    one. The fetched list is the base; nothing received after the request
    was issued is lost.

    Only one load runs at a time. A second call while one is in flight
    waits for and returns the first call's result.
    """

    def __init__(
        self,
        api: NotificationApiClient,
        marker: ReadStateMarker,
        counter: UnreadCounter,
        drawer: DrawerStateFlag,
        tasks: BackgroundTasks | None = None,
    ) -> None:
        super().__init__()
        self._api = api
        self._marker = marker
        self._counter = counter
        self._drawer = drawer
        self._tasks = tasks or BackgroundTasks("feed")
        self._entries: tuple[Delivery, ...] = ()
        self._pushed_ids: set[str] = set()
        self._unread_on_arrival: set[str] = set()
        self._buffer: list[list[Delivery]] | None = None
        self._load_task: asyncio.Task[tuple[Delivery, ...]] | None = None
        self._loaded = False
        marker.subscribe(self._apply_confirmed)

    # -- state ---------------------------------------------------------------

    @property
    def entries(self) -> tuple[Delivery, ...]:
        return self._entries

    @property
    def loading(self) -> bool:
        return self._load_task is not None

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def unread_on_arrival(self) -> frozenset[str]:
        """Ids that were unread when the latest load or broadcast put them in the list."""
        return frozenset(self._unread_on_arrival)

    def __contains__(self, notification_id: object) -> bool:
        return any(e.notification_id == notification_id for e in self._entries)

    # -- operations ----------------------------------------------------------

    async def load(self) -> tuple[Delivery, ...]:
        """Fetch the full history, replace the list, and mark everything unread as read."""
        if self._load_task is None:
            self._buffer = []
            self._load_task = asyncio.get_running_loop().create_task(self._load())
        return await asyncio.shield(self._load_task)

    def on_broadcast(self, matches: list[Delivery]) -> list[Delivery]:
        """Apply the user's deliveries from one broadcast; returns the entries added."""
        if not matches:
            return []
        # An in-flight load takes every arrival, whatever the drawer state.
        if self._buffer is not None:
            self._buffer.append(list(matches))
            return []
        if not self._drawer.is_open:
            return []

        added = self._prepend(list(self._entries), matches)
        if not added:
            return []
        self._counter.note_seen(d.notification_id for d in added)
        unread = [d.notification_id for d in added if not d.is_read]
        if unread:
            self._tasks.spawn(self._marker.mark_read(unread))
        return added

    # -- internal ------------------------------------------------------------

    async def _load(self) -> tuple[Delivery, ...]:
        try:
            try:
                fetched: list[Delivery] | None = await self._api.list_notifications()
            except NotificationApiError as exc:
                logger.warning(
                    "Notification history fetch failed, keeping %d entries: %s",
                    len(self._entries), exc,
                )
                fetched = None

            buffered, self._buffer = self._buffer or [], None
            if fetched is not None:
                merged = self._merge(fetched)
                self._pushed_ids &= {d.notification_id for d in merged}
                self._unread_on_arrival = {d.notification_id for d in merged if not d.is_read}
                self._loaded = True
                self._publish(merged)
            for group in buffered:
                self._prepend(list(self._entries), group)

            self._counter.note_seen(d.notification_id for d in self._entries)
            unread = [d.notification_id for d in self._entries if not d.is_read]
            if unread:
                await self._marker.mark_read(unread)

            if fetched is not None:
                if self._drawer.is_open:
                    self._counter.reset()
                else:
                    await self._counter.hydrate()
            return self._entries
        finally:
            self._buffer = None
            self._load_task = None

    def _merge(self, fetched: list[Delivery]) -> list[Delivery]:
        """Order fetched records newest first, keeping push copies already shown."""
        current = {d.notification_id: (rank, d) for rank, d in enumerate(self._entries)}
        offset = len(self._entries)
        seen: set[str] = set()
        rows: list[tuple[int, Delivery]] = []

        for position, record in enumerate(fetched):
            notification_id = record.notification_id
            if notification_id in seen:
                continue
            seen.add(notification_id)

            read = record.is_read or self._marker.is_confirmed(notification_id)
            prior = current.get(notification_id)
            if prior is not None:
                rank, existing = prior
                if notification_id in self._pushed_ids:
                    record = existing
                    read = read or existing.is_read
                rows.append((rank, record.as_read() if read else record))
            else:
                rows.append((offset + position, record.as_read() if read else record))

        # Equal timestamps keep the current list's order, then fetch order.
        rows.sort(key=lambda row: (row[1].sort_key, -row[0]), reverse=True)
        return [d for _, d in rows]

    def _prepend(self, entries: list[Delivery], group: list[Delivery]) -> list[Delivery]:
        present = {d.notification_id for d in entries}
        added: list[Delivery] = []
        for delivery in group:
            if delivery.notification_id in present:
                continue
            present.add(delivery.notification_id)
            if self._marker.is_confirmed(delivery.notification_id):
                delivery = delivery.as_read()
            added.append(delivery)
        if not added:
            return []
        self._pushed_ids.update(d.notification_id for d in added)
        self._unread_on_arrival.update(d.notification_id for d in added if not d.is_read)
        self._publish(added + entries)
        return added

    def _apply_confirmed(self, confirmed: frozenset[str]) -> None:
        if not any(d.notification_id in confirmed and not d.is_read for d in self._entries):
            return
        self._publish(
            [d.as_read() if d.notification_id in confirmed else d for d in self._entries]
        )

    def _publish(self, entries: list[Delivery]) -> None:
        self._entries = tuple(entries)
        self._notify(self._entries)
