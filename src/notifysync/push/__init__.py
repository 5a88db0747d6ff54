"""Push channel abstraction layer."""

from notifysync.push.channel import PushChannel, create_push_channel

__all__ = ["PushChannel", "create_push_channel"]
