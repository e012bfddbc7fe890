"""Category checkers."""

from librus_bot.checkers.announcements import AnnouncementChecker
from librus_bot.checkers.base import BaseChecker
from librus_bot.checkers.calendar import CalendarChecker
from librus_bot.checkers.grades import GradesChecker
from librus_bot.checkers.inbox import InboxChecker
from librus_bot.checkers.lucky_number import LuckyNumberChecker

__all__ = [
    "AnnouncementChecker",
    "BaseChecker",
    "CalendarChecker",
    "GradesChecker",
    "InboxChecker",
    "LuckyNumberChecker",
]
