"""Tests for the category checkers."""

from datetime import date, datetime

import pytest
from dateutil.tz import gettz

from librus_bot.checkers import (
    AnnouncementChecker,
    CalendarChecker,
    GradesChecker,
    InboxChecker,
    LuckyNumberChecker,
)
from librus_bot.checkers.grades import flatten_grades
from librus_bot.models import (
    Announcement,
    CalendarEvent,
    ChangeKind,
    GradeData,
    InboxMessage,
    MessageDetails,
    SemesterGrades,
    SubjectGrades,
)
from librus_bot.portal.base import PortalError

from conftest import BASE_URL


def ann(content):
    return Announcement(title=f"T-{content}", content=content, author="Dyrekcja")


def event(id, title, day=10):
    return CalendarEvent(id=id, title=title, day=date(2024, 3, day))


def subject(name, *semesters):
    return SubjectGrades(
        name=name,
        semesters=[
            SemesterGrades(grades=[GradeData(id=i, value=v) for i, v in sem])
            for sem in semesters
        ],
    )


# Announcements

@pytest.mark.asyncio
async def test_announcement_added(portal, store, batcher, sink):
    store.announcements = [ann("A")]
    portal.list_announcements.return_value = [ann("A"), ann("B")]
    checker = AnnouncementChecker(portal, store, batcher)

    await checker.run()

    assert len(sink.payloads) == 1
    payload = sink.payloads[0]
    assert payload.body == "B"
    assert payload.color == ChangeKind.ADDED.color
    assert payload.footer == "Announcement added"
    assert payload.author == "Dyrekcja"
    assert store.announcements == [ann("A"), ann("B")]


@pytest.mark.asyncio
async def test_announcement_edit_reports_add_and_remove(portal, store, batcher):
    store.announcements = [ann("old")]
    portal.list_announcements.return_value = [ann("new")]
    checker = AnnouncementChecker(portal, store, batcher)

    payloads = await checker.check()

    assert [(p.body, p.color) for p in payloads] == [
        ("new", ChangeKind.ADDED.color),
        ("old", ChangeKind.REMOVED.color),
    ]


@pytest.mark.asyncio
async def test_unchanged_announcements_produce_nothing(portal, store, batcher, sink):
    store.announcements = [ann("A")]
    portal.list_announcements.return_value = [ann("A")]

    await AnnouncementChecker(portal, store, batcher).run()

    assert sink.batches == []


@pytest.mark.asyncio
async def test_reordered_announcements_update_snapshot(portal, store, batcher):
    store.announcements = [ann("A"), ann("B")]
    portal.list_announcements.return_value = [ann("B"), ann("A")]

    payloads = await AnnouncementChecker(portal, store, batcher).check()

    assert payloads == []
    assert store.announcements == [ann("B"), ann("A")]


@pytest.mark.asyncio
async def test_fetch_failure_keeps_snapshot(portal, store, batcher, sink):
    store.announcements = [ann("A")]
    portal.list_announcements.side_effect = PortalError("down")

    await AnnouncementChecker(portal, store, batcher).run()

    assert store.announcements == [ann("A")]
    assert sink.batches == []


@pytest.mark.asyncio
async def test_announcements_prime_without_notifying(portal, store, batcher, sink):
    portal.list_announcements.return_value = [ann("A")]

    await AnnouncementChecker(portal, store, batcher).prime()

    assert store.announcements == [ann("A")]
    assert sink.batches == []


# Calendar

def clock(year, month):
    return lambda: datetime(year, month, 15, 12, 0)


@pytest.mark.asyncio
async def test_calendar_month_rollover_resets_without_notifying(portal, store, batcher, sink):
    store.calendar = [event("1", "Sprawdzian")]
    store.calendar_month = (2024, 3)
    april = [CalendarEvent(id="9", title="Wycieczka", day=date(2024, 4, 2))]
    portal.get_calendar.return_value = [april]
    checker = CalendarChecker(portal, store, batcher, clock=clock(2024, 4))

    await checker.run()

    assert sink.batches == []
    assert store.calendar == april
    assert store.calendar_month == (2024, 4)


@pytest.mark.asyncio
async def test_calendar_without_recorded_month_resets(portal, store, batcher):
    portal.get_calendar.return_value = [[event("1", "Sprawdzian")]]
    checker = CalendarChecker(portal, store, batcher, clock=clock(2024, 3))

    assert await checker.check() == []
    assert store.calendar_month == (2024, 3)


@pytest.mark.asyncio
async def test_calendar_flattens_weeks_and_reports_changes(portal, store, batcher):
    store.calendar = [event("1", "Sprawdzian", 4), event("2", "Kartkówka", 12)]
    store.calendar_month = (2024, 3)
    portal.get_calendar.return_value = [
        [event("1", "Sprawdzian", 4)],
        [event("3", "Wywiadówka", 20)],
    ]
    checker = CalendarChecker(portal, store, batcher, clock=clock(2024, 3))

    payloads = await checker.check()

    assert [(p.title, p.footer) for p in payloads] == [
        ("Wywiadówka", "Event added"),
        ("Kartkówka", "Event removed"),
    ]
    assert payloads[0].timestamp == datetime(2024, 3, 20, tzinfo=gettz("Europe/Warsaw"))
    assert store.calendar == [event("1", "Sprawdzian", 4), event("3", "Wywiadówka", 20)]


@pytest.mark.asyncio
async def test_calendar_title_edit_under_same_id_is_silent(portal, store, batcher):
    store.calendar = [event("1", "Sprawdzian")]
    store.calendar_month = (2024, 3)
    portal.get_calendar.return_value = [[event("1", "Sprawdzian z fizyki")]]
    checker = CalendarChecker(portal, store, batcher, clock=clock(2024, 3))

    assert await checker.check() == []
    assert store.calendar == [event("1", "Sprawdzian z fizyki")]


@pytest.mark.asyncio
async def test_calendar_events_without_id_fall_back_to_title(portal, store, batcher):
    store.calendar = [event(None, "Dzień wolny")]
    store.calendar_month = (2024, 3)
    portal.get_calendar.return_value = [[event(None, "Dzień wolny"), event(None, "Apel")]]
    checker = CalendarChecker(portal, store, batcher, clock=clock(2024, 3))

    payloads = await checker.check()

    assert [p.title for p in payloads] == ["Apel"]


@pytest.mark.asyncio
async def test_calendar_prime_records_month(portal, store, batcher):
    portal.get_calendar.return_value = [[event("1", "Sprawdzian")], []]
    checker = CalendarChecker(portal, store, batcher, clock=clock(2024, 3))

    await checker.prime()

    assert store.calendar == [event("1", "Sprawdzian")]
    assert store.calendar_month == (2024, 3)


# Inbox

def summary(id, read):
    return InboxMessage(id=id, author="Nauczyciel", title=f"Msg {id}", read=read)


def details(id):
    return MessageDetails(
        id=id,
        title=f"Msg {id}",
        content=f"Body {id}",
        author="Nauczyciel",
        url=f"wiadomosci/1/5/{id}/f0",
    )


@pytest.mark.asyncio
async def test_inbox_forwards_unread_messages(portal, store, batcher, sink):
    portal.list_inbox.return_value = [summary(1, False), summary(2, True), summary(3, False)]
    portal.get_message.side_effect = lambda folder, id: details(id)
    checker = InboxChecker(portal, store, batcher, base_url=BASE_URL)

    await checker.run()

    portal.list_inbox.assert_called_once_with(5)
    assert [p.body for p in sink.payloads] == ["Body 1", "Body 3"]
    assert sink.payloads[0].url == f"{BASE_URL}/wiadomosci/1/5/1/f0"


@pytest.mark.asyncio
async def test_inbox_only_looks_at_window(portal, store, batcher):
    portal.list_inbox.return_value = [summary(i, False) for i in range(30)]
    portal.get_message.side_effect = lambda folder, id: details(id)
    checker = InboxChecker(portal, store, batcher, base_url=BASE_URL, window=20)

    payloads = await checker.check()

    assert len(payloads) == 20
    assert portal.get_message.call_count == 20


@pytest.mark.asyncio
async def test_inbox_detail_failure_skips_only_that_message(portal, store, batcher):
    def get_message(folder, id):
        if id == 2:
            raise PortalError("gone")
        return details(id)

    portal.list_inbox.return_value = [summary(1, False), summary(2, False), summary(3, False)]
    portal.get_message.side_effect = get_message
    checker = InboxChecker(portal, store, batcher, base_url=BASE_URL)

    payloads = await checker.check()

    assert [p.body for p in payloads] == ["Body 1", "Body 3"]


@pytest.mark.asyncio
async def test_inbox_repeats_unread_message_every_cycle(portal, store, batcher, sink):
    portal.list_inbox.return_value = [summary(1, False)]
    portal.get_message.side_effect = lambda folder, id: details(id)
    checker = InboxChecker(portal, store, batcher, base_url=BASE_URL)

    await checker.run()
    await checker.run()

    assert [p.body for p in sink.payloads] == ["Body 1", "Body 1"]


# Grades

def test_flatten_grades_sorts_by_id_and_links():
    grades = flatten_grades(
        [subject("Fizyka", [(30, "5")], [(10, "4")]), subject("Biologia", [(20, "3+")])],
        BASE_URL + "/",
    )

    assert [(g.id, g.subject) for g in grades] == [(10, "Fizyka"), (20, "Biologia"), (30, "Fizyka")]
    assert grades[0].url == f"{BASE_URL}/przegladaj_oceny/szczegoly/10"


@pytest.mark.asyncio
async def test_grades_reordered_source_is_not_a_change(portal, store, batcher, sink):
    portal.get_grades.return_value = [subject("Fizyka", [(2, "5"), (1, "4")])]
    checker = GradesChecker(portal, store, batcher, base_url=BASE_URL)
    await checker.prime()

    portal.get_grades.return_value = [subject("Fizyka", [(1, "4"), (2, "5")])]
    await checker.run()

    assert sink.batches == []


@pytest.mark.asyncio
async def test_grades_report_removed_before_added(portal, store, batcher):
    portal.get_grades.return_value = [subject("Fizyka", [(1, "4"), (2, "5")])]
    checker = GradesChecker(portal, store, batcher, base_url=BASE_URL)
    await checker.prime()

    portal.get_grades.return_value = [subject("Fizyka", [(2, "5"), (3, "6")])]
    payloads = await checker.check()

    assert [(p.body.splitlines()[0], p.footer) for p in payloads] == [
        ("Grade: 4", "Grade removed"),
        ("Grade: 6", "Grade added"),
    ]
    assert [g.id for g in store.grades] == [2, 3]


@pytest.mark.asyncio
async def test_grade_value_change_under_same_id_is_not_reported(portal, store, batcher):
    portal.get_grades.return_value = [subject("Fizyka", [(1, "4")])]
    checker = GradesChecker(portal, store, batcher, base_url=BASE_URL)
    await checker.prime()

    portal.get_grades.return_value = [subject("Fizyka", [(1, "5")])]

    assert await checker.check() == []
    assert store.grades[0].value == "5"


# Lucky number

@pytest.mark.asyncio
async def test_lucky_number_change_notifies_once(portal, store, batcher, sink):
    store.lucky_number = 3
    portal.get_lucky_number.return_value = 13
    checker = LuckyNumberChecker(portal, store, batcher, student_index=7)

    await checker.run()

    assert len(sink.payloads) == 1
    assert "13" in sink.payloads[0].title
    assert "your number" not in sink.payloads[0].body
    assert store.lucky_number == 13
    assert not checker.maintenance


@pytest.mark.asyncio
async def test_lucky_number_unchanged_is_silent(portal, store, batcher, sink):
    store.lucky_number = 13
    checker = LuckyNumberChecker(portal, store, batcher)

    await checker.run()

    assert sink.batches == []


@pytest.mark.asyncio
async def test_lucky_number_zero_flags_maintenance(portal, store, batcher, sink):
    store.lucky_number = 13
    portal.get_lucky_number.return_value = 0
    checker = LuckyNumberChecker(portal, store, batcher)

    await checker.run()

    assert checker.maintenance
    assert sink.batches == []
    assert store.lucky_number == 13


@pytest.mark.asyncio
async def test_lucky_number_matching_index_celebrates(portal, store, batcher):
    portal.get_lucky_number.return_value = 7
    checker = LuckyNumberChecker(portal, store, batcher, student_index=7)

    payloads = await checker.check()

    assert len(payloads) == 1
    assert "That's your number!" in payloads[0].body


@pytest.mark.asyncio
async def test_lucky_number_maintenance_flag_clears_next_check(portal, store, batcher):
    portal.get_lucky_number.return_value = 0
    checker = LuckyNumberChecker(portal, store, batcher)
    await checker.check()

    portal.get_lucky_number.return_value = 4
    await checker.check()

    assert not checker.maintenance
