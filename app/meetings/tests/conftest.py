"""
Fixtures for meeting tests.

Fixtures:
    zego: ZegoAdapter with a test app id and 32-character secret
    broken_zego: ZegoAdapter with no configuration (always raises)
    meeting_notifier: RecordingDispatcher
    meeting_service: MeetingService wired to `zego`
    approved_lesson: Approved lesson with an allocated room
"""

import pytest

from lessons.tests.factories import LessonFactory
from meetings.adapters.zego import ZegoAdapter
from meetings.services import MeetingService
from notifications.tests.fakes import RecordingDispatcher

TEST_APP_ID = 123456789
TEST_SECRET = "0123456789abcdef0123456789abcdef"


@pytest.fixture
def zego():
    return ZegoAdapter(app_id=TEST_APP_ID, server_secret=TEST_SECRET, token_ttl_seconds=3600)


@pytest.fixture
def broken_zego():
    return ZegoAdapter(app_id=None, server_secret="")


@pytest.fixture
def meeting_notifier():
    return RecordingDispatcher()


@pytest.fixture
def meeting_service(zego, meeting_notifier):
    return MeetingService(provider=zego, notifier=meeting_notifier)


@pytest.fixture
def approved_lesson(student, teacher):
    return LessonFactory(student=student, approved=True, accepted_teacher=teacher)
