"""
In-memory snapshot store.

Holds the last known state of every tracked category. Each field is
written by exactly one checker and read back by the same checker on
its next run. Nothing is persisted; state lives as long as the process.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from librus_bot.models import Announcement, CalendarEvent, Grade


@dataclass
class SnapshotStore:
    announcements: List[Announcement] = field(default_factory=list)
    calendar: List[CalendarEvent] = field(default_factory=list)
    # (year, month) the calendar snapshot belongs to
    calendar_month: Optional[Tuple[int, int]] = None
    grades: List[Grade] = field(default_factory=list)
    lucky_number: Optional[int] = None
