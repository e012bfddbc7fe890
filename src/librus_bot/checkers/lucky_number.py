"""
Lucky number checker.

The portal reports 0 while it is in maintenance. Data fetched during
maintenance cannot be trusted, so the checker raises a flag the
scheduler uses to skip the rest of the round.
"""

import logging
from typing import List, Optional

from librus_bot.checkers.base import BaseChecker
from librus_bot.models import LUCKY_NUMBER_UNSET, NotificationPayload
from librus_bot.notify.batcher import NotificationBatcher
from librus_bot.notify.formatters import PayloadFormatter
from librus_bot.portal.base import PortalSource
from librus_bot.state import SnapshotStore

logger = logging.getLogger(__name__)


class LuckyNumberChecker(BaseChecker):
    """Reports a new lucky number and gates the round on maintenance."""

    name = "lucky_number"

    def __init__(
        self,
        portal: PortalSource,
        store: SnapshotStore,
        batcher: NotificationBatcher,
        student_index: Optional[int] = None,
    ):
        super().__init__(portal, store, batcher)
        self.student_index = student_index
        self.maintenance = False

    async def prime(self) -> None:
        number = await self.fetch(self.portal.get_lucky_number)
        if number != LUCKY_NUMBER_UNSET:
            self.store.lucky_number = number
        logger.info(f"Pre-fetched lucky number: {number}")

    async def check(self) -> List[NotificationPayload]:
        self.maintenance = False
        number = await self.fetch(self.portal.get_lucky_number)

        if number == LUCKY_NUMBER_UNSET:
            logger.info("Lucky number unset, portal is in maintenance mode")
            self.maintenance = True
            return []

        if number == self.store.lucky_number:
            return []

        logger.debug(f"Lucky number changed: {self.store.lucky_number} -> {number}")
        self.store.lucky_number = number
        return [PayloadFormatter.lucky_number(number, self.student_index)]
