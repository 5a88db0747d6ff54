"""Notification data models as they appear on the REST and push wires."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


def _coerce_str_id(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class NotificationPayload(BaseModel):
    """Display payload of a notification, shared by all of its deliveries."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    message: str = ""
    image: str | None = None
    redirect_url: str | None = None


class Delivery(BaseModel):
    """One notification addressed to one user, joined with its payload."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    notification_id: str
    user_id: str | None = None
    is_read: bool = False
    created_at: datetime | None = None
    notification: NotificationPayload = Field(
        default_factory=NotificationPayload, alias="Notification"
    )
    redirect_url: str | None = None

    @field_validator("notification_id", "user_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        return _coerce_str_id(value)

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("notification", mode="before")
    @classmethod
    def _null_payload(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def message(self) -> str:
        return self.notification.message

    @property
    def image(self) -> str | None:
        return self.notification.image

    @property
    def target_url(self) -> str | None:
        """Where a click on this delivery navigates, if anywhere."""
        return self.redirect_url or self.notification.redirect_url

    @property
    def sort_key(self) -> float:
        if self.created_at is None:
            return float("-inf")
        return self.created_at.timestamp()

    def as_read(self) -> Delivery:
        if self.is_read:
            return self
        return self.model_copy(update={"is_read": True})


class BroadcastEvent(BaseModel):
    """Role-addressed push payload: ``{"role": [...], "data": [Delivery, ...]}``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    role: tuple[str, ...]
    data: tuple[Delivery, ...] = ()

    @classmethod
    def parse(cls, raw: Any) -> BroadcastEvent | None:
        """Build an event from a raw payload, or return None if it is unusable.

        Individual malformed deliveries are dropped; the event survives as long
        as ``role`` and ``data`` are both lists.
        """
        if isinstance(raw, BroadcastEvent):
            return raw
        if not isinstance(raw, dict):
            logger.debug("Dropping broadcast with non-object payload: %r", raw)
            return None
        roles = raw.get("role")
        items = raw.get("data")
        if isinstance(roles, str):
            roles = [roles]
        if not isinstance(roles, list) or not isinstance(items, list):
            logger.debug("Dropping broadcast missing role/data lists: %r", raw)
            return None

        deliveries: list[Delivery] = []
        for item in items:
            try:
                deliveries.append(Delivery.model_validate(item))
            except ValidationError as exc:
                logger.debug("Dropping malformed delivery %r: %s", item, exc)
        return cls(role=tuple(str(r) for r in roles), data=tuple(deliveries))

    def to_payload(self) -> dict[str, Any]:
        return {
            "role": list(self.role),
            "data": [d.model_dump(mode="json", by_alias=True) for d in self.data],
        }
