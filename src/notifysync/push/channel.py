"""Abstract push channel and factory function."""

from __future__ import annotations

import abc
import logging
from typing import Any, Callable

from notifysync.core.config import PushConfig
from notifysync.notifications.models import BroadcastEvent

logger = logging.getLogger(__name__)

BroadcastHandler = Callable[[BroadcastEvent], None]
ConnectionListener = Callable[[bool], None]


class PushChannel(abc.ABC):
    """One long-lived push connection fanned out to local subscribers.

    Handlers run synchronously in arrival order. Nothing is replayed after a
    reconnect; subscribers learn about reconnects through
    :meth:`subscribe_connection` and must resync on their own.
    """

    def __init__(self, config: PushConfig) -> None:
        self.config = config
        self._handlers: list[BroadcastHandler] = []
        self._connection_listeners: list[ConnectionListener] = []
        self._connected = False

    # -- subscriptions -------------------------------------------------------

    def subscribe(self, handler: BroadcastHandler) -> Callable[[], None]:
        """Register ``handler`` for every broadcast; returns an unsubscribe callable."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def subscribe_connection(self, listener: ConnectionListener) -> Callable[[], None]:
        self._connection_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._connection_listeners:
                self._connection_listeners.remove(listener)

        return unsubscribe

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    # -- transport -----------------------------------------------------------

    @abc.abstractmethod
    async def connect(self) -> None:
        """Open the transport connection."""

    @abc.abstractmethod
    async def disconnect(self) -> None:
        """Close the transport connection."""

    @abc.abstractmethod
    async def emit(self, event: str, payload: Any) -> None:
        """Send an event to the push server."""

    async def publish(self, event: BroadcastEvent) -> None:
        """Emit a role-addressed notification event on behalf of a collaborator."""
        await self.emit(self.config.publish_event, event.to_payload())

    # -- dispatch helpers for providers ---------------------------------------

    def _dispatch(self, raw: Any) -> None:
        event = BroadcastEvent.parse(raw)
        if event is None:
            return
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception("Broadcast handler %r failed", handler)

    def _set_connected(self, connected: bool) -> None:
        self._connected = connected
        for listener in list(self._connection_listeners):
            try:
                listener(connected)
            except Exception:
                logger.exception("Connection listener %r failed", listener)


def create_push_channel(config: PushConfig) -> PushChannel:
    """Build the channel named by ``config.provider`` (case-insensitive)."""
    from notifysync.push.providers import PROVIDER_REGISTRY

    channel_cls = PROVIDER_REGISTRY.get(config.provider.lower())
    if channel_cls is None:
        raise ValueError(
            f"Unknown push provider {config.provider!r}; "
            f"expected one of {sorted(PROVIDER_REGISTRY)}"
        )
    logger.debug("Using %s push provider", config.provider.lower())
    return channel_cls(config)
