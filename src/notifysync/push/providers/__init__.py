"""Provider registry for push transports."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from notifysync.push.channel import PushChannel

from notifysync.push.providers.local import LocalPushChannel
from notifysync.push.providers.socketio_channel import SocketIOPushChannel

PROVIDER_REGISTRY: dict[str, type[PushChannel]] = {
    "socketio": SocketIOPushChannel,
    "local": LocalPushChannel,
}

__all__ = ["PROVIDER_REGISTRY", "LocalPushChannel", "SocketIOPushChannel"]
