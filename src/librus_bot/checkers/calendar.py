"""
Calendar checker.

The portal only shows the current month, so when the month changes the
whole view changes with it. That is not news: the snapshot is reset
and nothing is reported.
"""

import logging
from datetime import datetime, tzinfo
from typing import Callable, List, Optional, Tuple

from dateutil.tz import gettz

from librus_bot.checkers.base import BaseChecker
from librus_bot.config import DEFAULT_TIMEZONE
from librus_bot.diff import diff
from librus_bot.models import CalendarEvent, ChangeKind, NotificationPayload
from librus_bot.notify.batcher import NotificationBatcher
from librus_bot.notify.formatters import PayloadFormatter
from librus_bot.portal.base import PortalSource
from librus_bot.state import SnapshotStore

logger = logging.getLogger(__name__)


class CalendarChecker(BaseChecker):
    """Reports events added to or removed from the monthly calendar."""

    name = "calendar"

    def __init__(
        self,
        portal: PortalSource,
        store: SnapshotStore,
        batcher: NotificationBatcher,
        clock: Optional[Callable[[], datetime]] = None,
        timezone: Optional[tzinfo] = None,
    ):
        super().__init__(portal, store, batcher)
        self.timezone = timezone or gettz(DEFAULT_TIMEZONE)
        self.clock = clock or (lambda: datetime.now(self.timezone))

    def current_month(self) -> Tuple[int, int]:
        now = self.clock()
        return now.year, now.month

    async def _fetch_events(self) -> List[CalendarEvent]:
        weeks = await self.fetch(self.portal.get_calendar)
        return [event for week in weeks for event in week]

    async def prime(self) -> None:
        self.store.calendar = await self._fetch_events()
        self.store.calendar_month = self.current_month()
        logger.info(f"Pre-fetched {len(self.store.calendar)} calendar events")

    async def check(self) -> List[NotificationPayload]:
        fresh = await self._fetch_events()

        month = self.current_month()
        if self.store.calendar_month != month:
            logger.info(f"Starting new month {month[0]}-{month[1]:02d}, calendar reset")
            self.store.calendar = fresh
            self.store.calendar_month = month
            return []

        logger.debug(f"Got {len(fresh)}/{len(self.store.calendar)} calendar events")

        if fresh == self.store.calendar:
            return []

        delta = diff(self.store.calendar, fresh, key=lambda e: e.identity)
        self.store.calendar = fresh

        payloads = [
            PayloadFormatter.calendar_event(event, ChangeKind.ADDED, self.timezone)
            for event in delta.added
        ]
        payloads.extend(
            PayloadFormatter.calendar_event(event, ChangeKind.REMOVED, self.timezone)
            for event in delta.removed
        )
        return payloads
