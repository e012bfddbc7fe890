"""
Grades checker.

Grades come grouped by subject and semester; they are flattened into a
single list sorted by id, since the portal does not keep a stable
order between requests.

Grades are identified by id only. A grade whose value is corrected in
place keeps its id and is not reported.
"""

import logging
from typing import List

from librus_bot.checkers.base import BaseChecker
from librus_bot.diff import diff
from librus_bot.models import ChangeKind, Grade, NotificationPayload, SubjectGrades
from librus_bot.notify.batcher import NotificationBatcher
from librus_bot.notify.formatters import PayloadFormatter
from librus_bot.portal.base import PortalSource
from librus_bot.state import SnapshotStore

logger = logging.getLogger(__name__)


def flatten_grades(subjects: List[SubjectGrades], base_url: str) -> List[Grade]:
    """
    Flatten subject -> semester -> grade data into Grade records.

    Returns:
        List[Grade]: Sorted ascending by id, each with a details link
    """
    base_url = base_url.rstrip("/")
    grades = [
        Grade(
            id=data.id,
            subject=subject.name,
            value=data.value,
            info=data.info,
            url=f"{base_url}/przegladaj_oceny/szczegoly/{data.id}",
        )
        for subject in subjects
        for semester in subject.semesters
        for data in semester.grades
    ]
    return sorted(grades, key=lambda g: g.id)


class GradesChecker(BaseChecker):
    """Reports added and removed grades, removals first."""

    name = "grades"

    def __init__(
        self,
        portal: PortalSource,
        store: SnapshotStore,
        batcher: NotificationBatcher,
        base_url: str,
    ):
        super().__init__(portal, store, batcher)
        self.base_url = base_url

    async def _fetch_grades(self) -> List[Grade]:
        subjects = await self.fetch(self.portal.get_grades)
        return flatten_grades(subjects, self.base_url)

    async def prime(self) -> None:
        self.store.grades = await self._fetch_grades()
        logger.info(f"Pre-fetched {len(self.store.grades)} grades")

    async def check(self) -> List[NotificationPayload]:
        fresh = await self._fetch_grades()
        logger.debug(f"Got {len(fresh)}/{len(self.store.grades)} grades")

        if fresh == self.store.grades:
            return []

        delta = diff(self.store.grades, fresh, key=lambda g: g.id)
        self.store.grades = fresh

        payloads = [
            PayloadFormatter.grade(grade, ChangeKind.REMOVED) for grade in delta.removed
        ]
        payloads.extend(
            PayloadFormatter.grade(grade, ChangeKind.ADDED) for grade in delta.added
        )
        return payloads
