"""Library configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class ApiConfig(BaseSettings):
    """Notification REST backend configuration."""

    model_config = {"env_prefix": "NOTIFYSYNC_API_"}

    base_url: str = "http://localhost:8000"
    auth_token: str | None = None
    language: str = "en"
    timeout_seconds: float = 20.0
    max_retries: int = 1

    list_path: str = "/notification"
    unread_count_path: str = "/notification/unread-count"
    mark_read_path: str = "/notification/read-notification"


class PushConfig(BaseSettings):
    """Push channel configuration."""

    model_config = {"env_prefix": "NOTIFYSYNC_PUSH_"}

    provider: str = "socketio"
    url: str = "http://localhost:8000"
    auth_token: str | None = None
    transports: list[str] = Field(default_factory=lambda: ["websocket", "polling"])
    reconnection: bool = True

    broadcast_event: str = "receive-user-notification"
    publish_event: str = "send-notification-to-business-owner"


class SyncConfig(BaseSettings):
    """Counter and feed reconciliation configuration."""

    model_config = {"env_prefix": "NOTIFYSYNC_SYNC_"}

    resync_interval_seconds: float = 60.0
    badge_overflow: int = 99


class Settings(BaseSettings):
    """Root library settings."""

    model_config = {"env_prefix": "NOTIFYSYNC_"}

    api: ApiConfig = Field(default_factory=ApiConfig)
    push: PushConfig = Field(default_factory=PushConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
