"""
Data models for Librus Monitoring Bot.

Defines Pydantic models for all fetched entities:
- Announcement
- CalendarEvent
- InboxMessage / MessageDetails
- Grade (and the nested structure it is flattened from)
- NotificationPayload
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


# Lucky number reported while the portal is in maintenance mode
LUCKY_NUMBER_UNSET = 0

COLOR_DEFAULT = 0x3498DB


class ChangeKind(str, Enum):
    """Kinds of change a checker can report."""
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"

    @property
    def color(self) -> int:
        return {
            ChangeKind.ADDED: 0x2ECC71,
            ChangeKind.REMOVED: 0xE74C3C,
            ChangeKind.CHANGED: 0xF1C40F,
        }[self]


class AccountInfo(BaseModel):
    """Basic information about the logged in student."""
    student_name: str
    student_index: Optional[int] = None
    class_name: Optional[str] = None


class Announcement(BaseModel):
    """
    Represents a school announcement.

    Announcements carry no stable id on the portal, so the content
    itself is used as identity.

    Attributes:
        title: Announcement title
        content: Full announcement body
        author: Name of the person who posted
        posted_at: When the announcement was posted
    """
    title: str
    content: str
    author: str = ""
    posted_at: Optional[date] = None

    @property
    def identity(self) -> str:
        return self.content


class CalendarEvent(BaseModel):
    """
    Represents a single entry in the monthly calendar view.

    Attributes:
        id: Event id from the portal, when the entry links to details
        title: Event title as shown in the calendar cell
        day: Day of the month the event is on
    """
    id: Optional[str] = None
    title: str
    day: date

    @property
    def identity(self) -> str:
        """Event id, or the title for entries without one."""
        return self.id if self.id is not None else self.title


class InboxMessage(BaseModel):
    """Summary row from the inbox listing."""
    id: int
    author: str
    title: str
    sent_at: Optional[datetime] = None
    read: bool = False


class MessageDetails(BaseModel):
    """
    Full inbox message.

    Attributes:
        id: Message id
        title: Subject line
        content: Message body as plain text
        author: Sender
        url: Portal path of the message, relative to the base URL
        sent_at: When the message was sent
        read: Read flag at fetch time
    """
    id: int
    title: str
    content: str
    author: str
    url: str
    sent_at: Optional[datetime] = None
    read: bool = False


class GradeData(BaseModel):
    """A single grade as listed inside a semester."""
    id: int
    value: str
    info: str = ""


class SemesterGrades(BaseModel):
    grades: List[GradeData] = Field(default_factory=list)
    average: Optional[float] = None


class SubjectGrades(BaseModel):
    """All grades for one subject, grouped by semester."""
    name: str
    semesters: List[SemesterGrades] = Field(default_factory=list)
    average: Optional[float] = None


class Grade(BaseModel):
    """
    Flattened grade record used for change detection.

    Attributes:
        id: Grade id from the portal
        subject: Subject name
        value: Grade value (numeric or letter)
        info: Free-text description (category, teacher, date)
        url: Deep link to the grade details page
    """
    id: int
    subject: str
    value: str
    info: str = ""
    url: str


class NotificationPayload(BaseModel):
    """
    A single rich notification ready for the sink.

    Maps onto a generic embed shape: only title and body are required.
    """
    title: str
    body: str
    author: Optional[str] = None
    color: Optional[int] = None
    url: Optional[str] = None
    footer: Optional[str] = None
    timestamp: Optional[datetime] = None
