"""
Base checker class with shared plumbing.

A checker owns one category: it fetches the current state from the
portal, reconciles it with the snapshot store and produces payloads.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List

from librus_bot.models import NotificationPayload
from librus_bot.notify.batcher import NotificationBatcher
from librus_bot.portal.base import PortalSource
from librus_bot.state import SnapshotStore

logger = logging.getLogger(__name__)


class BaseChecker(ABC):
    """
    Base class for category checkers.

    Subclasses implement ``check``; ``run`` is what the scheduler calls.
    """

    name: str = "base"
    # Fire once right after priming, before the first scheduled round
    run_on_start: bool = False

    def __init__(
        self,
        portal: PortalSource,
        store: SnapshotStore,
        batcher: NotificationBatcher,
    ):
        """
        Initialize checker.

        Args:
            portal: Data source to fetch from
            store: Snapshot store shared by all checkers
            batcher: Where produced payloads are delivered
        """
        self.portal = portal
        self.store = store
        self.batcher = batcher

    async def fetch(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking portal call in a worker thread."""
        return await asyncio.to_thread(func, *args)

    async def prime(self) -> None:
        """Populate the initial snapshot without notifying."""
        return None

    @abstractmethod
    async def check(self) -> List[NotificationPayload]:
        """Reconcile with the portal and return payloads to deliver."""

    async def run(self) -> None:
        """
        Run one check and deliver its payloads.

        Never raises: failures are logged and the snapshot is left as is.
        """
        logger.debug(f"Checking {self.name}...")
        try:
            payloads = await self.check()
        except Exception as e:
            logger.error(f"Error checking {self.name}: {e}", exc_info=True)
            return

        if payloads:
            logger.info(f"{self.name}: {len(payloads)} change(s) detected")
            await self.batcher.send(payloads)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
