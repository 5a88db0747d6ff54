"""Tests for wire models and recipient filtering."""

from __future__ import annotations

from datetime import datetime, timezone

from notifysync.core.types import SessionUser
from notifysync.notifications.filters import RecipientFilter
from notifysync.notifications.models import BroadcastEvent, Delivery

from tests.conftest import OWNER, broadcast, make_delivery


class TestDelivery:
    def test_parses_backend_record(self) -> None:
        d = Delivery.model_validate(
            {
                "id": 91,
                "notification_id": 17,
                "user_id": 4,
                "is_read": False,
                "created_at": "2025-03-01T10:00:00.000Z",
                "Notification": {
                    "message": "Offer approved",
                    "image": "https://cdn.test/a.png",
                    "redirect_url": "/offers/3",
                },
            }
        )
        assert d.notification_id == "17"
        assert d.user_id == "4"
        assert d.message == "Offer approved"
        assert d.image == "https://cdn.test/a.png"
        assert d.target_url == "/offers/3"
        assert d.created_at == datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)

    def test_naive_timestamp_is_utc(self) -> None:
        d = Delivery.model_validate({"notification_id": "1", "created_at": "2025-03-01T10:00:00"})
        assert d.created_at.tzinfo is timezone.utc

    def test_null_payload_defaults(self) -> None:
        d = Delivery.model_validate({"notification_id": "1", "Notification": None})
        assert d.message == ""
        assert d.target_url is None

    def test_top_level_redirect_wins(self) -> None:
        d = Delivery.model_validate(
            {
                "notification_id": "1",
                "redirect_url": "/top",
                "Notification": {"redirect_url": "/nested"},
            }
        )
        assert d.target_url == "/top"

    def test_as_read_is_a_copy(self) -> None:
        d = make_delivery(1)
        read = d.as_read()
        assert read.is_read is True
        assert d.is_read is False
        assert read.as_read() is read

    def test_missing_timestamp_sorts_last(self) -> None:
        assert make_delivery(1, minute=None).sort_key < make_delivery(2, minute=-600).sort_key


class TestBroadcastEventParse:
    def test_parses_wire_payload(self) -> None:
        event = BroadcastEvent.parse(broadcast(make_delivery(1), make_delivery(2, user_id="u2")))
        assert event is not None
        assert event.role == ("business_owner",)
        assert [d.notification_id for d in event.data] == ["1", "2"]

    def test_rejects_non_object(self) -> None:
        assert BroadcastEvent.parse("hello") is None
        assert BroadcastEvent.parse(None) is None

    def test_rejects_missing_role_or_data(self) -> None:
        assert BroadcastEvent.parse({"data": []}) is None
        assert BroadcastEvent.parse({"role": ["admin"]}) is None
        assert BroadcastEvent.parse({"role": ["admin"], "data": {"user_id": 1}}) is None

    def test_single_role_string_accepted(self) -> None:
        event = BroadcastEvent.parse({"role": "admin", "data": []})
        assert event is not None
        assert event.role == ("admin",)

    def test_drops_malformed_items_only(self) -> None:
        event = BroadcastEvent.parse(
            {
                "role": ["business_owner"],
                "data": ["junk", {"user_id": "u1"}, {"notification_id": 5, "user_id": "u1"}],
            }
        )
        assert event is not None
        assert [d.notification_id for d in event.data] == ["5"]

    def test_to_payload_uses_wire_keys(self) -> None:
        event = BroadcastEvent.parse(broadcast(make_delivery(1)))
        payload = event.to_payload()
        assert payload["role"] == ["business_owner"]
        assert payload["data"][0]["Notification"]["message"] == "Notification 1"


class TestRecipientFilter:
    def setup_method(self) -> None:
        self.filter = RecipientFilter(OWNER)

    def _event(self, *deliveries: Delivery, roles=("business_owner",)) -> BroadcastEvent:
        return BroadcastEvent.parse(broadcast(*deliveries, roles=roles))

    def test_matches_user_and_role(self) -> None:
        event = self._event(make_delivery(1, user_id="u2"), make_delivery(1, user_id="u1"))
        matches = self.filter.matching(event)
        assert [(d.notification_id, d.user_id) for d in matches] == [("1", "u1")]

    def test_role_excluded(self) -> None:
        assert self.filter.matching(self._event(make_delivery(1), roles=("admin",))) == []

    def test_no_entry_for_user(self) -> None:
        assert self.filter.matching(self._event(make_delivery(1, user_id="u9"))) == []

    def test_none_event(self) -> None:
        assert self.filter.matching(None) == []

    def test_duplicate_ids_within_event_collapse(self) -> None:
        event = self._event(make_delivery(1), make_delivery(1), make_delivery(2))
        assert [d.notification_id for d in self.filter.matching(event)] == ["1", "2"]

    def test_numeric_user_id_matches(self) -> None:
        f = RecipientFilter(SessionUser(user_id=7, role="user"))
        event = BroadcastEvent.parse(
            {"role": ["user"], "data": [{"notification_id": 1, "user_id": 7}]}
        )
        assert len(f.matching(event)) == 1
