"""Header badges that render the session's unread count."""

from __future__ import annotations

from typing import Callable

from notifysync.sync.session import NotificationSession


class HeaderBadge:
    """Bell icon with an unread count, shown in the site header."""

    kind = "header"

    def __init__(
        self,
        session: NotificationSession,
        on_render: Callable[[HeaderBadge], None] | None = None,
    ) -> None:
        self._session = session
        self._on_render = on_render
        self._unsubscribe: Callable[[], None] | None = None
        self.renders = 0

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    @property
    def count(self) -> int:
        return self._session.counter.value

    @property
    def visible(self) -> bool:
        return self.count > 0

    @property
    def label(self) -> str:
        overflow = self._session.settings.sync.badge_overflow
        if self.count > overflow:
            return f"{overflow}+"
        return str(self.count)

    async def mount(self) -> None:
        if self.mounted:
            return
        self._unsubscribe = self._session.counter.subscribe(self._changed)
        self._render()
        await self._session.hydrate()

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def toggle_drawer(self) -> None:
        """The bell is also the drawer's open/close control."""
        if self._session.drawer.is_open:
            self._session.close_drawer()
        else:
            await self._session.open_drawer()

    def _changed(self, value: int) -> None:
        self._render()

    def _render(self) -> None:
        self.renders += 1
        if self._on_render is not None:
            self._on_render(self)


class AdminHeaderBadge(HeaderBadge):
    """The same badge in the admin dashboard header."""

    kind = "admin"
