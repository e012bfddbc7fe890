"""
Main entry point for Librus Monitoring Bot.

Wires the portal client, snapshot store, checkers and webhook together
and runs the poll scheduler until interrupted.
"""

import asyncio
import logging
import sys
from typing import Optional

from librus_bot.checkers import (
    AnnouncementChecker,
    CalendarChecker,
    GradesChecker,
    InboxChecker,
    LuckyNumberChecker,
)
from librus_bot.config import Settings, get_settings, setup_logging
from librus_bot.notify import NotificationBatcher, WebhookNotifier
from librus_bot.portal import PortalAuthError, PortalClient, PortalSession
from librus_bot.scheduler import PollScheduler
from librus_bot.state import SnapshotStore

logger = logging.getLogger(__name__)


def build_scheduler(settings: Settings, session: Optional[PortalSession] = None) -> PollScheduler:
    """
    Build the full component graph from settings.

    Args:
        settings: Validated application settings
        session: Portal session to use, a new one if not provided

    Returns:
        PollScheduler: Ready to ``run()``
    """
    portal = PortalClient(
        session or PortalSession(settings.portal_base_url),
        timezone=settings.tz,
    )
    store = SnapshotStore()
    batcher = NotificationBatcher(WebhookNotifier(settings.webhook_url))

    lucky_number = LuckyNumberChecker(
        portal, store, batcher, student_index=settings.student_index
    )
    checkers = [
        AnnouncementChecker(portal, store, batcher),
        CalendarChecker(portal, store, batcher, timezone=settings.tz),
        InboxChecker(
            portal,
            store,
            batcher,
            base_url=settings.portal_base_url,
            folder=settings.inbox_folder,
            window=settings.inbox_window,
        ),
        GradesChecker(portal, store, batcher, base_url=settings.portal_base_url),
    ]

    return PollScheduler(
        portal,
        settings.librus_login,
        settings.librus_password,
        lucky_number=lucky_number,
        checkers=checkers,
        interval=settings.poll_interval,
    )


def main() -> int:
    """
    Entry point for the Librus Monitoring Bot.

    Returns:
        int: Exit code (0 for clean shutdown, 1 for failure)
    """
    try:
        # Validate configuration early
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        print("Please check your environment variables.", file=sys.stderr)
        return 1

    setup_logging(settings)
    logger.debug(f"Loaded configuration for {settings.portal_base_url}")

    # Use context manager so the HTTP session is closed on exit
    with PortalSession(settings.portal_base_url) as session:
        scheduler = build_scheduler(settings, session)

        try:
            asyncio.run(scheduler.run())
        except PortalAuthError as e:
            logger.error(f"Failed to login: {e}")
            return 1
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")

    return 0


if __name__ == "__main__":
    sys.exit(main())
