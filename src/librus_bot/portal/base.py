"""
Portal data source interface.

The checkers only depend on this protocol; ``PortalClient`` is the
production implementation. Methods are blocking and are run in a
worker thread by the checkers.
"""

from typing import List, Protocol

from librus_bot.models import (
    AccountInfo,
    Announcement,
    CalendarEvent,
    InboxMessage,
    MessageDetails,
    SubjectGrades,
)


class PortalError(Exception):
    """Raised when a portal page cannot be fetched or understood."""
    pass


class PortalAuthError(PortalError):
    """Raised when logging in to the portal fails."""
    pass


class PortalSource(Protocol):
    def authorize(self, login: str, password: str) -> AccountInfo: ...

    def list_announcements(self) -> List[Announcement]: ...

    def get_calendar(self) -> List[List[CalendarEvent]]: ...

    def list_inbox(self, folder: int) -> List[InboxMessage]: ...

    def get_message(self, folder: int, message_id: int) -> MessageDetails: ...

    def get_grades(self) -> List[SubjectGrades]: ...

    def get_lucky_number(self) -> int: ...
