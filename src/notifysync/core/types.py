"""Core type definitions shared across notifysync modules."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, field_validator


class DrawerState(StrEnum):
    """Whether the notification drawer is currently showing the feed."""

    CLOSED = "closed"
    OPEN = "open"


class SessionUser(BaseModel):
    """The authenticated user a session delivers notifications for."""

    model_config = {"frozen": True}

    user_id: str
    role: str
    token: str | None = None
    display_name: str | None = None

    @field_validator("user_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value
