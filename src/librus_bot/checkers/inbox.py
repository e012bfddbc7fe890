"""
Inbox checker.

Every unread message among the newest ones is fetched and forwarded.
There is no memory of what was already forwarded: a message keeps
being reported on every cycle until it is read on the portal.
"""

import logging
from typing import List

from librus_bot.checkers.base import BaseChecker
from librus_bot.models import InboxMessage, NotificationPayload
from librus_bot.notify.batcher import NotificationBatcher
from librus_bot.notify.formatters import PayloadFormatter
from librus_bot.portal.base import PortalSource
from librus_bot.state import SnapshotStore

logger = logging.getLogger(__name__)


class InboxChecker(BaseChecker):
    """Forwards unread inbox messages."""

    name = "inbox"
    run_on_start = True

    def __init__(
        self,
        portal: PortalSource,
        store: SnapshotStore,
        batcher: NotificationBatcher,
        base_url: str,
        folder: int = 5,
        window: int = 20,
    ):
        super().__init__(portal, store, batcher)
        self.base_url = base_url
        self.folder = folder
        self.window = window

    async def check(self) -> List[NotificationPayload]:
        messages: List[InboxMessage] = await self.fetch(self.portal.list_inbox, self.folder)

        payloads = []
        for message in messages[:self.window]:
            if message.read:
                continue

            logger.debug(f"Found unread message id {message.id}")
            try:
                details = await self.fetch(self.portal.get_message, self.folder, message.id)
            except Exception as e:
                logger.error(f"Error fetching message {message.id}: {e}")
                continue

            payloads.append(PayloadFormatter.message(details, self.base_url))

        return payloads
