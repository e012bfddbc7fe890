"""
Notification formatters.

Turns fetched records into NotificationPayloads for the webhook.
"""

from datetime import datetime, time, tzinfo
from typing import Optional

from dateutil.tz import gettz

from librus_bot.config import DEFAULT_TIMEZONE
from librus_bot.models import (
    COLOR_DEFAULT,
    Announcement,
    CalendarEvent,
    ChangeKind,
    Grade,
    MessageDetails,
    NotificationPayload,
)


class PayloadFormatter:
    """
    Builds notification payloads for every tracked category.

    The change kind decides the accent color and the footer label.
    """

    # Discord embed limits
    MAX_TITLE = 256
    MAX_BODY = 4096

    FOOTERS = {
        "announcement": {
            ChangeKind.ADDED: "Announcement added",
            ChangeKind.REMOVED: "Announcement removed",
        },
        "event": {
            ChangeKind.ADDED: "Event added",
            ChangeKind.REMOVED: "Event removed",
        },
        "grade": {
            ChangeKind.ADDED: "Grade added",
            ChangeKind.REMOVED: "Grade removed",
        },
    }

    @staticmethod
    def _truncate(text: str, max_length: int) -> str:
        """Truncate text with ellipsis if too long."""
        if len(text) <= max_length:
            return text
        return text[:max_length - 3].rsplit(" ", 1)[0] + "..."

    @classmethod
    def _payload(cls, title: str, body: str, **fields) -> NotificationPayload:
        return NotificationPayload(
            title=cls._truncate(title or "(no title)", cls.MAX_TITLE),
            body=cls._truncate(body or "-", cls.MAX_BODY),
            **fields,
        )

    @classmethod
    def announcement(cls, announcement: Announcement, kind: ChangeKind) -> NotificationPayload:
        return cls._payload(
            announcement.title,
            announcement.content,
            author=announcement.author or None,
            color=kind.color,
            footer=cls.FOOTERS["announcement"][kind],
        )

    @classmethod
    def calendar_event(
        cls,
        event: CalendarEvent,
        kind: ChangeKind,
        tz: Optional[tzinfo] = None,
    ) -> NotificationPayload:
        """Event notification, timestamped with local midnight of the event day."""
        return cls._payload(
            event.title,
            event.title,
            color=kind.color,
            footer=cls.FOOTERS["event"][kind],
            timestamp=datetime.combine(event.day, time(), tzinfo=tz or gettz(DEFAULT_TIMEZONE)),
        )

    @classmethod
    def message(cls, details: MessageDetails, base_url: str) -> NotificationPayload:
        return cls._payload(
            details.title,
            details.content,
            author=details.author or None,
            color=COLOR_DEFAULT,
            url=f"{base_url.rstrip('/')}/{details.url.lstrip('/')}",
            footer="New message",
            timestamp=details.sent_at,
        )

    @classmethod
    def grade(cls, grade: Grade, kind: ChangeKind) -> NotificationPayload:
        lines = [f"Grade: {grade.value}"]
        if grade.info:
            lines.append(grade.info)

        return cls._payload(
            grade.subject,
            "\n".join(lines),
            color=kind.color,
            url=grade.url,
            footer=cls.FOOTERS["grade"][kind],
        )

    @classmethod
    def lucky_number(
        cls,
        number: int,
        student_index: Optional[int] = None,
    ) -> NotificationPayload:
        """
        Lucky number announcement.

        Celebrates when the number drawn is the student's own.
        """
        body = f"Today's lucky number is {number}."
        if student_index is not None and number == student_index:
            body += "\n\n🎉 That's your number! You're safe today! 🎉"

        return cls._payload(
            f"Lucky number: {number}",
            body,
            color=ChangeKind.CHANGED.color,
            footer="Lucky number",
        )
