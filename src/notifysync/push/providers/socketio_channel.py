"""Socket.IO push channel using python-socketio's asyncio client."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import socketio
from socketio import exceptions as socketio_exceptions

from notifysync.core.config import PushConfig
from notifysync.push.channel import PushChannel

logger = logging.getLogger(__name__)


class SocketIOPushChannel(PushChannel):
    """Talks to the Socket.IO server that rebroadcasts notification events."""

    def __init__(self, config: PushConfig) -> None:
        super().__init__(config)
        self._sio = socketio.AsyncClient(reconnection=config.reconnection)
        self._sio.on("connect", self._on_connect)
        self._sio.on("disconnect", self._on_disconnect)
        self._sio.on("auth_error", self._on_auth_error)
        self._sio.on(config.broadcast_event, self._on_broadcast)
        self.last_error: Exception | None = None
        self._retry_task: asyncio.Task[None] | None = None

    # -- public API ----------------------------------------------------------

    async def connect(self) -> None:
        """Connect once; on failure keep retrying in the background if reconnection is on.

        python-socketio only reconnects sessions that were established. A
        refused first attempt is retried with ``retry=True``, which blocks
        until it connects, so it runs as a task that ``disconnect`` cancels.
        """
        if self._sio.connected or self._retry_task is not None:
            return
        try:
            await self._sio.connect(self.config.url, retry=False, **self._connect_options())
        except socketio_exceptions.ConnectionError as exc:
            self.last_error = exc
            logger.warning("Push channel connect to %s failed: %s", self.config.url, exc)
            if self.config.reconnection:
                self._retry_task = asyncio.get_running_loop().create_task(self._retry_connect())

    async def disconnect(self) -> None:
        task, self._retry_task = self._retry_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self._sio.connected:
            await self._sio.disconnect()
        if self._connected:
            self._set_connected(False)

    async def emit(self, event: str, payload: Any) -> None:
        if not self._sio.connected:
            logger.warning("Dropping %r emit: push channel is not connected", event)
            return
        await self._sio.emit(event, payload)

    # -- internal ------------------------------------------------------------

    def _connect_options(self) -> dict[str, Any]:
        headers: dict[str, str] = {}
        if self.config.auth_token:
            headers["Token"] = self.config.auth_token
        return {"headers": headers, "transports": self.config.transports}

    async def _retry_connect(self) -> None:
        try:
            await self._sio.connect(self.config.url, retry=True, **self._connect_options())
        except socketio_exceptions.ConnectionError as exc:
            self.last_error = exc
            logger.warning("Push channel gave up connecting to %s: %s", self.config.url, exc)
        else:
            self.last_error = None
        finally:
            if self._retry_task is asyncio.current_task():
                self._retry_task = None

    # -- socket.io event handlers ---------------------------------------------

    def _on_connect(self) -> None:
        logger.info("Push channel connected to %s", self.config.url)
        self._set_connected(True)

    def _on_disconnect(self, *args: Any) -> None:
        logger.info("Push channel disconnected")
        self._set_connected(False)

    def _on_auth_error(self, message: Any) -> None:
        logger.warning("Push channel auth error: %s", message)

    def _on_broadcast(self, payload: Any) -> None:
        self._dispatch(payload)
