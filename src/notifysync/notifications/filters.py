"""Client-side recipient filtering for role-addressed broadcasts."""

from __future__ import annotations

from notifysync.core.types import SessionUser
from notifysync.notifications.models import BroadcastEvent, Delivery


class RecipientFilter:
    """Selects the deliveries of a broadcast that belong to one session user.

    The push transport fans events out by role, so every connected client of
    that role sees every recipient's delivery. Both checks run here and
    nowhere else.
    """

    def __init__(self, user: SessionUser) -> None:
        self._user = user

    @property
    def user(self) -> SessionUser:
        return self._user

    def role_matches(self, event: BroadcastEvent) -> bool:
        return self._user.role in event.role

    def matching(self, event: BroadcastEvent | None) -> list[Delivery]:
        """Return the user's deliveries in ``event``, first copy per notification id."""
        if event is None or not self.role_matches(event):
            return []
        seen: set[str] = set()
        matches: list[Delivery] = []
        for delivery in event.data:
            if delivery.user_id != self._user.user_id:
                continue
            if delivery.notification_id in seen:
                continue
            seen.add(delivery.notification_id)
            matches.append(delivery)
        return matches
