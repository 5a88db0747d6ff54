"""Async client for the notification REST endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

import httpx
from pydantic import ValidationError

from notifysync.core.config import ApiConfig
from notifysync.notifications.models import Delivery

logger = logging.getLogger(__name__)


class NotificationApiError(Exception):
    """A notification endpoint failed or answered with ``success: false``."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UnauthorizedError(NotificationApiError):
    """The backend rejected the session token (HTTP 401)."""


class NotificationApiClient:
    """Talks to the notification backend.

    Every response is expected in the ``{"success", "message", "data"}``
    envelope; :meth:`_unwrap` returns ``data`` or raises
    :class:`NotificationApiError`.
    """

    def __init__(
        self,
        config: ApiConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        headers: dict[str, str] = {"Accept": "application/json"}
        if config.auth_token:
            headers["Authorization"] = f"Bearer {config.auth_token}"
            headers["language"] = config.language
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
            headers=headers,
            transport=transport,
        )

    # -- public API ----------------------------------------------------------

    async def list_notifications(self) -> list[Delivery]:
        """Fetch the current user's full notification history."""
        data = await self._call("GET", self.config.list_path)
        if not isinstance(data, list):
            raise NotificationApiError(
                f"Expected a list from {self.config.list_path}, got {type(data).__name__}"
            )
        deliveries: list[Delivery] = []
        for item in data:
            try:
                deliveries.append(Delivery.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping malformed notification record: %s", exc)
        return deliveries

    async def unread_count(self) -> int:
        data = await self._call("GET", self.config.unread_count_path)
        if isinstance(data, dict):
            data = data.get("count", data.get("unread_count"))
        try:
            return int(data)
        except (TypeError, ValueError) as exc:
            raise NotificationApiError(f"Unread count is not an integer: {data!r}") from exc

    async def mark_read(self, notification_ids: Iterable[str]) -> None:
        """Mark deliveries read for the current user. Safe to repeat."""
        ids = list(notification_ids)
        if not ids:
            return
        await self._call("PATCH", self.config.mark_read_path, json={"id": ids})

    async def close(self) -> None:
        await self._http.aclose()

    # -- internal ------------------------------------------------------------

    async def _call(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send one request and unwrap its envelope.

        Server errors and transport failures are retried ``max_retries``
        times with exponential backoff; the last outcome is what counts.
        """
        attempts = max(1, self.config.max_retries + 1)
        for attempt in range(1, attempts + 1):
            try:
                resp = await self._http.request(method, url, **kwargs)
            except httpx.TransportError as exc:
                if attempt == attempts:
                    raise NotificationApiError(f"{method} {url} failed: {exc}") from exc
                reason = str(exc)
            except httpx.HTTPError as exc:
                raise NotificationApiError(f"{method} {url} failed: {exc}") from exc
            else:
                if resp.status_code < 500 or attempt == attempts:
                    return self._unwrap(method, url, resp)
                reason = f"HTTP {resp.status_code}"

            delay = 0.5 * 2 ** (attempt - 1)
            logger.warning(
                "%s %s failed (%s), retry %d/%d in %.1fs",
                method, url, reason, attempt, attempts - 1, delay,
            )
            await asyncio.sleep(delay)

    @staticmethod
    def _unwrap(method: str, url: str, resp: httpx.Response) -> Any:
        body: Any = None
        try:
            body = resp.json()
        except ValueError:
            pass

        message = body.get("message") if isinstance(body, dict) else None
        if resp.status_code == 401:
            raise UnauthorizedError(message or "Unauthorized access.", status_code=401)
        if resp.status_code >= 400:
            raise NotificationApiError(
                message or f"{method} {url} returned {resp.status_code}",
                status_code=resp.status_code,
            )
        if not isinstance(body, dict):
            raise NotificationApiError(
                f"{method} {url} returned a non-envelope body", status_code=resp.status_code
            )
        if not body.get("success", False):
            raise NotificationApiError(
                message or f"{method} {url} reported failure", status_code=resp.status_code
            )
        return body.get("data")
