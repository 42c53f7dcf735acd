import pytest

from lessons.tests.factories import LessonFactory
from notifications.tests.fakes import RecordingDispatcher
from reviews.services import ReviewService


@pytest.fixture
def review_notifier():
    return RecordingDispatcher()


@pytest.fixture
def review_service(review_notifier):
    return ReviewService(notifier=review_notifier)


@pytest.fixture
def use_review_service(monkeypatch, review_service):
    monkeypatch.setattr("reviews.views.get_review_service", lambda: review_service)


@pytest.fixture
def completed_lesson(student, teacher):
    return LessonFactory(student=student, completed=True, accepted_teacher=teacher)
