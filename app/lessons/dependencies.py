"""Factory for the lesson lifecycle service and its collaborators."""

from functools import lru_cache

from lessons.services import LessonService
from meetings.dependencies import get_meeting_service
from notifications.dependencies import get_notification_dispatcher
from payments.dependencies import get_settlement_service
from points.services import PointsService


@lru_cache
def get_lesson_service() -> LessonService:
    return LessonService(
        meetings=get_meeting_service(),
        notifier=get_notification_dispatcher(),
        settlement=get_settlement_service(),
        points=PointsService,
    )
