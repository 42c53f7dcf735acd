"""
Fixtures for lesson tests.

Fixtures:
    lesson_notifier: RecordingDispatcher shared by every collaborator
    lesson_gateway: FakePaymentGateway
    lesson_service: LessonService with a real Zego adapter (no network),
        the fake gateway and the recording dispatcher
    use_lesson_service: Route the lesson and payment views to the same wiring
    open_lesson / approved_lesson / paid_lesson: Lessons at lifecycle points
"""

import pytest

from lessons.services import LessonService
from lessons.tests.factories import LessonFactory
from meetings.adapters.zego import ZegoAdapter
from meetings.services import MeetingService
from notifications.tests.fakes import RecordingDispatcher
from payments.services import SettlementService
from payments.tests.fakes import FakePaymentGateway


@pytest.fixture
def lesson_notifier():
    return RecordingDispatcher()


@pytest.fixture
def lesson_gateway():
    return FakePaymentGateway()


@pytest.fixture
def settlement_service(lesson_gateway, lesson_notifier):
    return SettlementService(gateway=lesson_gateway, notifier=lesson_notifier)


@pytest.fixture
def meeting_service(lesson_notifier):
    zego = ZegoAdapter(app_id=987654, server_secret="abcdefghijklmnopqrstuvwxyz012345")
    return MeetingService(provider=zego, notifier=lesson_notifier)


@pytest.fixture
def lesson_service(meeting_service, lesson_notifier, settlement_service):
    return LessonService(
        meetings=meeting_service,
        notifier=lesson_notifier,
        settlement=settlement_service,
    )


@pytest.fixture
def use_lesson_service(monkeypatch, lesson_service, settlement_service, meeting_service):
    monkeypatch.setattr("lessons.views.get_lesson_service", lambda: lesson_service)
    monkeypatch.setattr("payments.views.get_settlement_service", lambda: settlement_service)
    monkeypatch.setattr("meetings.views.get_meeting_service", lambda: meeting_service)


@pytest.fixture
def open_lesson(student):
    return LessonFactory(student=student)


@pytest.fixture
def interested_lesson(student, teacher):
    """Open lesson that `teacher` has accepted."""
    return LessonFactory(student=student, interested=[teacher])


@pytest.fixture
def approved_lesson(student, teacher):
    return LessonFactory(student=student, approved=True, accepted_teacher=teacher)


@pytest.fixture
def paid_lesson(student, teacher):
    return LessonFactory(student=student, approved=True, accepted_teacher=teacher, paid=True)
