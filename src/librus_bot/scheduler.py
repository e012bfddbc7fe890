"""
Poll scheduler.

Drives all checkers:
1. Log in to the portal (fatal on failure)
2. Prime every checker's snapshot, one after another
3. Fire start-up checkers (inbox) right away
4. Every interval, run a round: lucky number first, then everything
   else concurrently unless the portal is in maintenance
"""

import asyncio
import logging
from typing import Dict, List, Optional, Set

from librus_bot.checkers.base import BaseChecker
from librus_bot.checkers.lucky_number import LuckyNumberChecker
from librus_bot.models import AccountInfo
from librus_bot.portal.base import PortalSource

logger = logging.getLogger(__name__)


class PollScheduler:
    """
    Runs checkers on a fixed cadence.

    At most one invocation per checker is in flight; a checker that is
    still busy when it is due again is skipped for that round.
    """

    def __init__(
        self,
        portal: PortalSource,
        login: str,
        password: str,
        lucky_number: LuckyNumberChecker,
        checkers: List[BaseChecker],
        interval: float = 600,
    ):
        """
        Initialize the scheduler.

        Args:
            portal: Data source, used here for login only
            login: Portal login
            password: Portal password
            lucky_number: Checker gating every round
            checkers: All other checkers
            interval: Seconds between rounds
        """
        self.portal = portal
        self.login = login
        self.password = password
        self.lucky_number = lucky_number
        self.checkers = checkers
        self.interval = interval

        self.account: Optional[AccountInfo] = None
        self._in_flight: Dict[str, asyncio.Task] = {}
        self._rounds: Set[asyncio.Task] = set()

    @property
    def all_checkers(self) -> List[BaseChecker]:
        return [self.lucky_number, *self.checkers]

    async def prime(self) -> AccountInfo:
        """
        Log in and pre-fetch every snapshot.

        A checker that fails to prime is logged and left empty; the
        others still prime.

        Raises:
            PortalAuthError: If login fails
        """
        logger.info("Logging in...")
        self.account = await asyncio.to_thread(
            self.portal.authorize, self.login, self.password
        )
        logger.info("Logged in!")

        if self.lucky_number.student_index is None:
            self.lucky_number.student_index = self.account.student_index

        for checker in self.all_checkers:
            logger.info(f"Pre-fetching {checker.name}")
            try:
                await checker.prime()
            except Exception as e:
                logger.error(f"Failed to pre-fetch {checker.name}: {e}", exc_info=True)

        logger.info("Initialization done.")
        return self.account

    def is_busy(self, checker: BaseChecker) -> bool:
        task = self._in_flight.get(checker.name)
        return task is not None and not task.done()

    def launch(self, checker: BaseChecker) -> Optional[asyncio.Task]:
        """
        Start a checker as an independent task.

        Returns:
            The new task, or None if the previous run is still going
        """
        if self.is_busy(checker):
            logger.warning(f"Previous {checker.name} check still running, skipping")
            return None

        task = asyncio.create_task(checker.run(), name=f"check-{checker.name}")
        self._in_flight[checker.name] = task
        return task

    async def run_round(self) -> None:
        """One polling round: the lucky number gate, then every other checker."""
        gate = self.launch(self.lucky_number)
        if gate is None:
            return
        await gate

        if self.lucky_number.maintenance:
            logger.info("Portal in maintenance, skipping this round")
            return

        for checker in self.checkers:
            self.launch(checker)

    def start_round(self) -> asyncio.Task:
        """Start a round in the background without waiting for it."""
        task = asyncio.create_task(self.run_round(), name="poll-round")
        self._rounds.add(task)
        task.add_done_callback(self._rounds.discard)
        return task

    async def drain(self) -> None:
        """Wait for every round and checker currently in flight."""
        while True:
            pending = [t for t in (*self._rounds, *self._in_flight.values()) if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def run(self) -> None:
        """Prime, then poll forever."""
        await self.prime()

        logger.info("Looking for changes...")
        for checker in self.checkers:
            if checker.run_on_start:
                self.launch(checker)

        while True:
            await asyncio.sleep(self.interval)
            self.start_round()
