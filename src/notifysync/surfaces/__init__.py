"""Presentation surfaces that consume the session's counter and feed."""

from notifysync.surfaces.badge import AdminHeaderBadge, HeaderBadge
from notifysync.surfaces.drawer import DrawerItem, NotificationDrawer

__all__ = ["AdminHeaderBadge", "DrawerItem", "HeaderBadge", "NotificationDrawer"]
