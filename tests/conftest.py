"""
Shared fixtures for Librus Bot tests.

The portal is a plain Mock: checkers call its blocking methods in a
worker thread, so no async mocking is needed.
"""

from typing import List, Sequence
from unittest.mock import Mock

import pytest

from librus_bot.models import AccountInfo, NotificationPayload
from librus_bot.notify.batcher import NotificationBatcher
from librus_bot.state import SnapshotStore

BASE_URL = "https://synergia.librus.pl"


class RecordingSink:
    """Sink that remembers every batch it was handed."""

    def __init__(self, results: Sequence[object] = ()):
        self.batches: List[List[NotificationPayload]] = []
        self._results = list(results)

    def send(self, payloads):
        self.batches.append(list(payloads))
        if self._results:
            result = self._results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        return True

    @property
    def payloads(self) -> List[NotificationPayload]:
        return [p for batch in self.batches for p in batch]


@pytest.fixture
def store():
    return SnapshotStore()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def batcher(sink):
    return NotificationBatcher(sink)


@pytest.fixture
def portal():
    portal = Mock()
    portal.authorize.return_value = AccountInfo(student_name="Jan Kowalski", student_index=7)
    portal.list_announcements.return_value = []
    portal.get_calendar.return_value = []
    portal.list_inbox.return_value = []
    portal.get_grades.return_value = []
    portal.get_lucky_number.return_value = 13
    return portal
