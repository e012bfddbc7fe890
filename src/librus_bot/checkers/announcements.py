"""
Announcement checker.

Announcements are identified by their content, so an edited
announcement is reported as one removal plus one addition.
"""

import logging
from typing import List

from librus_bot.checkers.base import BaseChecker
from librus_bot.diff import diff
from librus_bot.models import Announcement, ChangeKind, NotificationPayload
from librus_bot.notify.formatters import PayloadFormatter

logger = logging.getLogger(__name__)


class AnnouncementChecker(BaseChecker):
    """Reports added and removed announcements."""

    name = "announcements"

    async def prime(self) -> None:
        self.store.announcements = await self.fetch(self.portal.list_announcements)
        logger.info(f"Pre-fetched {len(self.store.announcements)} announcements")

    async def check(self) -> List[NotificationPayload]:
        fresh: List[Announcement] = await self.fetch(self.portal.list_announcements)
        logger.debug(f"Got {len(fresh)}/{len(self.store.announcements)} announcements")

        if fresh == self.store.announcements:
            return []

        delta = diff(self.store.announcements, fresh, key=lambda a: a.identity)
        self.store.announcements = fresh

        payloads = [
            PayloadFormatter.announcement(item, ChangeKind.ADDED) for item in delta.added
        ]
        payloads.extend(
            PayloadFormatter.announcement(item, ChangeKind.REMOVED) for item in delta.removed
        )
        return payloads
