"""Slide-out drawer listing the notification history."""

from __future__ import annotations

from typing import Callable

from pydantic import BaseModel

from notifysync.notifications.models import Delivery
from notifysync.sync.session import NotificationSession


class DrawerItem(BaseModel):
    """One rendered row of the drawer."""

    notification_id: str
    message: str
    image: str | None = None
    timestamp_label: str
    highlighted: bool = False
    redirect_url: str | None = None

    @classmethod
    def from_delivery(cls, delivery: Delivery, highlighted: bool) -> DrawerItem:
        return cls(
            notification_id=delivery.notification_id,
            message=delivery.message,
            image=delivery.image,
            timestamp_label=(
                delivery.created_at.isoformat() if delivery.created_at else "Recently"
            ),
            highlighted=highlighted,
            redirect_url=delivery.target_url,
        )


class NotificationDrawer:
    """Renders the feed and relays open/close/click intents to the session.

    Rows that arrived unread stay highlighted for as long as the drawer
    shows them, even after the backend has confirmed them read.
    """

    def __init__(
        self,
        session: NotificationSession,
        on_render: Callable[[NotificationDrawer], None] | None = None,
    ) -> None:
        self._session = session
        self._on_render = on_render
        self._unsubscribers: list[Callable[[], None]] = []
        self.renders = 0

    @property
    def is_open(self) -> bool:
        return self._session.drawer.is_open

    @property
    def loading(self) -> bool:
        return self._session.feed.loading

    @property
    def items(self) -> list[DrawerItem]:
        highlighted = self._session.feed.unread_on_arrival
        return [
            DrawerItem.from_delivery(d, d.notification_id in highlighted)
            for d in self._session.feed.entries
        ]

    @property
    def empty(self) -> bool:
        return not self._session.feed.entries

    def mount(self) -> None:
        if self._unsubscribers:
            return
        self._unsubscribers = [
            self._session.feed.subscribe(lambda _entries: self._render()),
            self._session.drawer.subscribe(lambda _state: self._render()),
        ]

    def unmount(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    async def open(self) -> list[DrawerItem]:
        await self._session.open_drawer()
        return self.items

    def close(self) -> None:
        self._session.close_drawer()

    async def toggle(self) -> None:
        if self.is_open:
            self.close()
        else:
            await self.open()

    def click(self, notification_id: str) -> str | None:
        """Return the URL to navigate to for a row, closing the drawer if there is one."""
        for delivery in self._session.feed.entries:
            if delivery.notification_id != notification_id:
                continue
            url = delivery.target_url
            if url:
                self.close()
            return url
        return None

    def _render(self) -> None:
        self.renders += 1
        if self._on_render is not None:
            self._on_render(self)
