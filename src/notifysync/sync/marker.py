"""Batched, deduplicated mark-as-read requests."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable

from notifysync.api.client import NotificationApiClient, NotificationApiError
from notifysync.sync.observable import Observable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkReadResult:
    """Outcome of a ``mark_read`` call for the ids that call asked about."""

    confirmed: frozenset[str] = field(default_factory=frozenset)
    pending: frozenset[str] = field(default_factory=frozenset)
    error: NotificationApiError | None = None

    @property
    def ok(self) -> bool:
        return not self.pending


class ReadStateMarker(Observable[frozenset[str]]):
    """Marks deliveries read, at most one request in flight.

    Ids submitted while a batch is in flight wait in ``pending`` and go out
    in a follow-up batch once it resolves. A failed batch goes back to
    ``pending`` whole and waits for the next trigger; the failure is logged
    and counted but never raised to callers. Listeners receive each
    confirmed batch.
    """

    def __init__(self, api: NotificationApiClient) -> None:
        super().__init__()
        self._api = api
        self._pending: set[str] = set()
        self._in_flight: frozenset[str] = frozenset()
        self._confirmed: set[str] = set()
        self._drain_task: asyncio.Task[None] | None = None
        self.failures = 0
        self.last_error: NotificationApiError | None = None
        self.batches_sent = 0

    @property
    def pending(self) -> frozenset[str]:
        return frozenset(self._pending)

    @property
    def in_flight(self) -> frozenset[str]:
        return self._in_flight

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def is_confirmed(self, notification_id: str) -> bool:
        return notification_id in self._confirmed

    async def mark_read(self, notification_ids: Iterable[str]) -> MarkReadResult:
        requested = frozenset(notification_ids)
        for notification_id in requested:
            if notification_id not in self._confirmed and notification_id not in self._in_flight:
                self._pending.add(notification_id)

        if self._pending and self._drain_task is None:
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())
        if self._drain_task is not None and not requested <= self._confirmed:
            await asyncio.shield(self._drain_task)

        return self._result_for(requested)

    async def flush(self) -> MarkReadResult:
        """Retry whatever is pending, e.g. after an earlier failure."""
        return await self.mark_read(self.pending)

    def _result_for(self, requested: frozenset[str]) -> MarkReadResult:
        confirmed = frozenset(i for i in requested if i in self._confirmed)
        return MarkReadResult(
            confirmed=confirmed,
            pending=requested - confirmed,
            error=self.last_error if requested - confirmed else None,
        )

    async def _drain(self) -> None:
        try:
            while self._pending:
                batch = frozenset(self._pending)
                self._pending.clear()
                self._in_flight = batch
                try:
                    await self._api.mark_read(sorted(batch))
                except NotificationApiError as exc:
                    self._pending |= batch
                    self.failures += 1
                    self.last_error = exc
                    logger.warning(
                        "Mark-read batch of %d failed, %d ids left pending: %s",
                        len(batch), len(self._pending), exc,
                    )
                    return
                finally:
                    self._in_flight = frozenset()
                self.batches_sent += 1
                self.last_error = None
                self._confirmed |= batch
                self._notify(batch)
        finally:
            self._drain_task = None
