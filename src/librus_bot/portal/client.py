"""
Librus Synergia portal client.

Turns portal pages into typed records. Page parsing lives in
module-level ``parse_*`` functions so it can be exercised on saved HTML.
"""

import logging
import re
from datetime import date, datetime, tzinfo
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag
from dateutil import parser as date_parser
from dateutil.tz import gettz

from librus_bot.config import DEFAULT_TIMEZONE
from librus_bot.models import (
    LUCKY_NUMBER_UNSET,
    AccountInfo,
    Announcement,
    CalendarEvent,
    GradeData,
    InboxMessage,
    MessageDetails,
    SemesterGrades,
    SubjectGrades,
)
from librus_bot.portal.base import PortalAuthError, PortalError
from librus_bot.portal.session import PortalSession, page_text

logger = logging.getLogger(__name__)

EVENT_ID_RE = re.compile(r"szczegoly(?:_wolne)?/(\d+)")
MESSAGE_ID_RE = re.compile(r"/wiadomosci/\d+/\d+/(\d+)")
GRADE_ID_RE = re.compile(r"/przegladaj_oceny/szczegoly/(\d+)")


def parse_date(text: Optional[str], tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """
    Parse a portal date string.

    Args:
        text: Date string to parse
        tz: Timezone applied when the string carries none

    Returns:
        datetime or None if parsing fails
    """
    if not text:
        return None
    try:
        parsed = date_parser.parse(text.strip(), fuzzy=True)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Could not parse date '{text}': {e}")
        return None

    # Apply timezone if not present
    if parsed.tzinfo is None and tz:
        parsed = parsed.replace(tzinfo=tz)

    return parsed


def _labelled_rows(table: Tag) -> Dict[str, Tag]:
    """Map ``<th>label</th><td>value</td>`` rows of a table by label."""
    rows = {}
    for row in table.select("tr"):
        label = row.find("th") or row.find("td", class_="left")
        value = label.find_next_sibling("td") if label else None
        if label is not None and value is not None:
            rows[page_text(label).rstrip(":")] = value
    return rows


def parse_announcements(soup: BeautifulSoup) -> List[Announcement]:
    """Parse the announcements board (``/ogloszenia``)."""
    announcements = []

    for table in soup.select("table.decorated"):
        title_cell = table.select_one("thead td") or table.select_one("thead th")
        rows = _labelled_rows(table)
        if title_cell is None or "Treść" not in rows:
            continue

        posted = parse_date(page_text(rows.get("Data publikacji")))
        announcements.append(Announcement(
            title=page_text(title_cell),
            content=rows["Treść"].get_text("\n").strip(),
            author=page_text(rows.get("Dodał")),
            posted_at=posted.date() if posted else None,
        ))

    return announcements


def _calendar_month(soup: BeautifulSoup) -> date:
    """Month shown by the calendar page, falling back to today."""
    month = soup.select_one("select[name=miesiac] option[selected]")
    year = soup.select_one("select[name=rok] option[selected]")
    today = date.today()
    try:
        return date(
            int(year["value"]) if year else today.year,
            int(month["value"]) if month else today.month,
            1,
        )
    except (KeyError, ValueError):
        return today.replace(day=1)


def parse_calendar(soup: BeautifulSoup) -> List[List[CalendarEvent]]:
    """
    Parse the monthly calendar (``/terminarz``) into weeks of events.

    Each week is one table row; every day cell holds its number and a
    nested table with one cell per event.
    """
    month = _calendar_month(soup)
    weeks = []

    for row in soup.select("table.kalendarz > tbody > tr"):
        week = []
        for cell in row.find_all("td", recursive=False):
            number = cell.select_one(".kalendarz-numer-dnia")
            if number is None:
                continue
            try:
                day = month.replace(day=int(page_text(number)))
            except ValueError:
                continue

            for entry in cell.select("table td"):
                title = page_text(entry)
                if not title:
                    continue
                match = EVENT_ID_RE.search(entry.get("onclick", ""))
                week.append(CalendarEvent(
                    id=match.group(1) if match else None,
                    title=title,
                    day=day,
                ))
        weeks.append(week)

    return weeks


def parse_inbox(soup: BeautifulSoup, tz: Optional[tzinfo] = None) -> List[InboxMessage]:
    """Parse an inbox folder listing (``/wiadomosci/<folder>``)."""
    messages = []

    for row in soup.select("table.decorated.stretch > tbody > tr"):
        link = row.find("a", href=MESSAGE_ID_RE)
        cells = row.find_all("td", recursive=False)
        if link is None or len(cells) < 5:
            continue

        style = cells[2].get("style", "").replace(" ", "")
        messages.append(InboxMessage(
            id=int(MESSAGE_ID_RE.search(link["href"]).group(1)),
            author=page_text(cells[2]),
            title=page_text(link),
            sent_at=parse_date(page_text(cells[4]), tz),
            read="font-weight:bold" not in style,
        ))

    return messages


def parse_message(
    soup: BeautifulSoup,
    folder: int,
    message_id: int,
    tz: Optional[tzinfo] = None,
) -> MessageDetails:
    """Parse a single message page."""
    content = soup.select_one(".container-message-content")
    if content is None:
        raise PortalError(f"Message {message_id} has no content block")

    rows = {}
    for table in soup.select("table.stretch"):
        rows.update(_labelled_rows(table))

    return MessageDetails(
        id=message_id,
        title=page_text(rows.get("Temat")),
        content=content.get_text("\n").strip(),
        author=page_text(rows.get("Nadawca")),
        url=f"wiadomosci/1/{folder}/{message_id}/f0",
        sent_at=parse_date(page_text(rows.get("Wysłano")), tz),
        read=True,
    )


def parse_grades(soup: BeautifulSoup) -> List[SubjectGrades]:
    """
    Parse the grades overview (``/przegladaj_oceny/uczen``).

    Every cell holding grade boxes is treated as one semester column.
    """
    subjects = []

    for row in soup.select("table.decorated.stretch > tbody > tr.line0, "
                           "table.decorated.stretch > tbody > tr.line1"):
        cells = row.find_all("td", recursive=False)
        if len(cells) < 3:
            continue
        name = page_text(cells[1])
        if not name:
            continue

        semesters = []
        for cell in cells[2:]:
            grades = []
            for link in cell.select("span.grade-box a"):
                match = GRADE_ID_RE.search(link.get("href", ""))
                if match is None:
                    continue
                info = BeautifulSoup(link.get("title", ""), "lxml")
                grades.append(GradeData(
                    id=int(match.group(1)),
                    value=page_text(link),
                    info=" ".join(info.get_text(" ").split()),
                ))
            if grades:
                semesters.append(SemesterGrades(grades=grades))

        subjects.append(SubjectGrades(name=name, semesters=semesters))

    return subjects


def parse_lucky_number(soup: BeautifulSoup) -> int:
    """Lucky number from the student dashboard, 0 when not shown."""
    tag = soup.select_one(".luckyNumber b") or soup.select_one(".luckyNumber")
    try:
        return int(page_text(tag))
    except ValueError:
        return LUCKY_NUMBER_UNSET


def parse_account_info(soup: BeautifulSoup) -> AccountInfo:
    """Parse the account information page (``/informacja``)."""
    rows = {}
    for table in soup.select("table.decorated"):
        rows.update(_labelled_rows(table))

    name = page_text(rows.get("Uczeń"))
    if not name:
        raise PortalError("Account page does not list a student")

    try:
        index = int(page_text(rows.get("Nr w dzienniku")))
    except ValueError:
        index = None

    return AccountInfo(
        student_name=name,
        student_index=index,
        class_name=page_text(rows.get("Klasa")) or None,
    )


class PortalClient:
    """
    Blocking client for the Synergia web portal.

    Implements ``PortalSource`` on top of an authenticated ``PortalSession``.
    """

    def __init__(
        self,
        session: Optional[PortalSession] = None,
        timezone: Optional[tzinfo] = None,
    ):
        """
        Initialize portal client.

        Args:
            session: Session to fetch pages with
            timezone: Timezone of dates shown on the portal
        """
        self.session = session or PortalSession()
        self.timezone = timezone or gettz(DEFAULT_TIMEZONE)

    def authorize(self, login: str, password: str) -> AccountInfo:
        """
        Log in and fetch the account summary.

        An account page that cannot be read or lists no student means
        the login did not go through.

        Raises:
            PortalAuthError: If login fails
        """
        self.session.login(login, password)

        try:
            account = parse_account_info(self.session.get_page("/informacja"))
        except PortalAuthError:
            raise
        except PortalError as e:
            raise PortalAuthError(f"Failed to login: {e}") from e

        logger.info(f"Logged in as {account.student_name}")
        return account

    def list_announcements(self) -> List[Announcement]:
        return parse_announcements(self.session.get_page("/ogloszenia"))

    def get_calendar(self) -> List[List[CalendarEvent]]:
        return parse_calendar(self.session.get_page("/terminarz"))

    def list_inbox(self, folder: int) -> List[InboxMessage]:
        return parse_inbox(self.session.get_page(f"/wiadomosci/{folder}"), self.timezone)

    def get_message(self, folder: int, message_id: int) -> MessageDetails:
        page = self.session.get_page(f"/wiadomosci/1/{folder}/{message_id}/f0")
        return parse_message(page, folder, message_id, self.timezone)

    def get_grades(self) -> List[SubjectGrades]:
        return parse_grades(self.session.get_page("/przegladaj_oceny/uczen"))

    def get_lucky_number(self) -> int:
        return parse_lucky_number(self.session.get_page("/uczen/index"))
