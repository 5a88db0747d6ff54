"""Tests for the unread counter reconciler."""

from __future__ import annotations

import pytest

from notifysync.sync.counter import UnreadCounter
from notifysync.sync.state import DrawerStateFlag

from tests.conftest import FakeApi, make_delivery


class TestUnreadCounter:
    def setup_method(self) -> None:
        self.api = FakeApi(count=3)
        self.drawer = DrawerStateFlag()
        self.counter = UnreadCounter(self.api, self.drawer)
        self.seen_values: list[int] = []
        self.counter.subscribe(self.seen_values.append)

    @pytest.mark.asyncio
    async def test_hydrate_sets_value(self) -> None:
        self.counter.increment(5)
        assert await self.counter.hydrate() is True
        assert self.counter.value == 3

    @pytest.mark.asyncio
    async def test_hydrate_failure_keeps_last_value(self, caplog) -> None:
        self.counter.set(4)
        self.api.fail_count = 1
        assert await self.counter.hydrate() is False
        assert self.counter.value == 4
        assert "Unread count refresh failed" in caplog.text

    @pytest.mark.asyncio
    async def test_hydrate_clamps_negative(self) -> None:
        self.api.count = -2
        await self.counter.hydrate()
        assert self.counter.value == 0

    def test_set_clamps_and_notifies_only_on_change(self) -> None:
        self.counter.set(-5)
        self.counter.set(2)
        self.counter.set(2)
        self.counter.reset()
        assert self.seen_values == [2, 0]

    def test_broadcast_while_closed_counts_each_delivery(self) -> None:
        added = self.counter.on_broadcast([make_delivery(1), make_delivery(2)])
        assert added == 2
        assert self.counter.value == 2

    def test_broadcast_while_open_not_counted(self) -> None:
        self.drawer.open()
        assert self.counter.on_broadcast([make_delivery(1)]) == 0
        assert self.counter.value == 0

    def test_redelivery_counted_once(self) -> None:
        self.counter.on_broadcast([make_delivery(1)])
        self.counter.on_broadcast([make_delivery(1)])
        assert self.counter.value == 1

    def test_seen_while_open_not_counted_after_close(self) -> None:
        self.drawer.open()
        self.counter.on_broadcast([make_delivery(1)])
        self.drawer.close()
        self.counter.on_broadcast([make_delivery(1)])
        assert self.counter.value == 0

    def test_note_seen_suppresses_counting(self) -> None:
        self.counter.note_seen(["7"])
        assert self.counter.has_seen("7")
        assert self.counter.on_broadcast([make_delivery(7)]) == 0

    def test_empty_broadcast_is_noop(self) -> None:
        assert self.counter.on_broadcast([]) == 0
        assert self.seen_values == []

    def test_listener_failure_does_not_break_counter(self) -> None:
        def broken(value):
            raise RuntimeError("boom")

        self.counter.subscribe(broken)
        self.counter.increment()
        assert self.counter.value == 1
        assert self.seen_values == [1]
