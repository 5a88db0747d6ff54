"""Shared open/closed flag for the notification drawer."""

from __future__ import annotations

from notifysync.core.types import DrawerState
from notifysync.sync.observable import Observable


class DrawerStateFlag(Observable[DrawerState]):
    """Read synchronously by the counter and the feed store on every broadcast."""

    def __init__(self, state: DrawerState = DrawerState.CLOSED) -> None:
        super().__init__()
        self._state = state

    @property
    def state(self) -> DrawerState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is DrawerState.OPEN

    def set(self, state: DrawerState) -> None:
        if state is self._state:
            return
        self._state = state
        self._notify(state)

    def open(self) -> None:
        self.set(DrawerState.OPEN)

    def close(self) -> None:
        self.set(DrawerState.CLOSED)
