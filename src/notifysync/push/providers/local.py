"""In-process loopback push channel."""

from __future__ import annotations

from typing import Any

from notifysync.core.config import PushConfig
from notifysync.push.channel import PushChannel


class LocalPushChannel(PushChannel):
    """Delivers emitted events straight back to local subscribers.

    Events named like the broadcast event, or the collaborator publish event
    (which the server would rebroadcast), reach subscribers while connected.
    Anything emitted while disconnected is dropped, as with a real transport.
    """

    def __init__(self, config: PushConfig) -> None:
        super().__init__(config)
        self.emitted: list[tuple[str, Any]] = []

    async def connect(self) -> None:
        if not self._connected:
            self._set_connected(True)

    async def disconnect(self) -> None:
        if self._connected:
            self._set_connected(False)

    async def emit(self, event: str, payload: Any) -> None:
        self.emitted.append((event, payload))
        if not self._connected:
            return
        if event in (self.config.broadcast_event, self.config.publish_event):
            self._dispatch(payload)

    def deliver(self, payload: Any) -> None:
        """Simulate one physical arrival of a broadcast from the server."""
        if self._connected:
            self._dispatch(payload)
