"""
Meeting session services.

Services:
    MeetingService: Room provisioning, join tokens and room event tracking

Room events arrive from the provider webhook and are routed through a
handler registry keyed by event name:

    RoomUserJoin   upcoming -> ongoing  (lesson must be approved)
    RoomUserLeave  ongoing  -> finished (only once; repeats are no-ops)

Unknown events are logged and acknowledged. Participants are notified
after the lesson row lock is released.

Usage:
    from meetings.dependencies import get_meeting_service

    service = get_meeting_service()
    result = service.handle_event("RoomUserJoin", room_id, user_id, event_time)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone as dt_timezone
from typing import TYPE_CHECKING, Callable

from core.services import BaseService, ServiceResult

from lessons.models import Lesson
from lessons.states import LessonStatus, MeetingStatus
from meetings.exceptions import MeetingProviderError
from notifications.messages import MessageType

if TYPE_CHECKING:
    from authentication.models import User
    from meetings.adapters.zego import ZegoAdapter
    from notifications.services import NotificationDispatcher


logger = logging.getLogger(__name__)

# Provider timestamps above this are milliseconds (1e11 s is year 5138)
MILLISECOND_THRESHOLD = 1e11


# =============================================================================
# Handler Registry
# =============================================================================


ROOM_EVENT_HANDLERS: dict[str, Callable[[Lesson, datetime], str | None]] = {}


def register_room_event(event: str) -> Callable:
    """
    Register a handler for a provider room event.

    Handlers receive the locked lesson and the event time, mutate and save
    the lesson, and return the message type to send to both participants,
    or None when nothing changed.
    """

    def decorator(func):
        ROOM_EVENT_HANDLERS[event] = func
        return func

    return decorator


@register_room_event("RoomUserJoin")
def handle_room_user_join(lesson: Lesson, event_time: datetime) -> str | None:
    if lesson.status != LessonStatus.APPROVED or lesson.meeting_status != MeetingStatus.UPCOMING:
        return None

    lesson.start_meeting(started_at=event_time)
    lesson.save()
    return MessageType.LESSON_STARTED


@register_room_event("RoomUserLeave")
def handle_room_user_leave(lesson: Lesson, event_time: datetime) -> str | None:
    if lesson.meeting_ended_at is not None or lesson.meeting_status != MeetingStatus.ONGOING:
        return None

    lesson.finish_meeting(ended_at=event_time)
    lesson.save()
    return MessageType.LESSON_ENDED


# =============================================================================
# Service
# =============================================================================


class MeetingService(BaseService):
    """
    Video room lifecycle for lessons.

    The provider adapter and notifier are injected; see
    meetings.dependencies for the production wiring.
    """

    def __init__(self, provider: ZegoAdapter, notifier: NotificationDispatcher):
        self.provider = provider
        self.notifier = notifier

    def provision_room(self, lesson: Lesson) -> Lesson:
        """
        Allocate the lesson's room and mint both participants' tokens.

        Raises:
            MeetingProviderError: If the provider cannot issue tokens
        """
        room_id = lesson.meeting_room_id or self.provider.create_room(lesson.id)
        lesson.meeting_room_id = room_id
        lesson.student_join_token = self.provider.generate_token(str(lesson.student_id), room_id)
        lesson.teacher_join_token = self.provider.generate_token(
            str(lesson.accepted_teacher_id), room_id
        )
        lesson.save(update_fields=["meeting_room_id", "student_join_token", "teacher_join_token", "updated_at"])

        self.get_logger().info(
            f"Provisioned room {room_id}",
            extra={"lesson_id": str(lesson.id), "room_id": room_id},
        )
        return lesson

    def get_join_token(self, user: User, lesson: Lesson) -> ServiceResult[dict]:
        """
        Return the caller's own join token, minting it if missing.

        Only the lesson's student and accepted teacher may join, and only
        once the lesson is approved.
        """
        if not lesson.is_participant(user):
            return ServiceResult.failure(
                "Only the lesson's student and teacher can join",
                error_code="NOT_LESSON_PARTICIPANT",
            )
        if lesson.status != LessonStatus.APPROVED:
            return ServiceResult.failure(
                f"Cannot join a {lesson.status} lesson",
                error_code="INVALID_STATE",
            )

        token = lesson.join_token_for(user)
        if not token or not lesson.meeting_room_id:
            try:
                self.provision_room(lesson)
            except MeetingProviderError as e:
                return self.handle_exception(e, f"Provisioning room for lesson {lesson.id}")
            token = lesson.join_token_for(user)

        return ServiceResult.success(
            {
                "room_id": lesson.meeting_room_id,
                "token": token,
                "app_id": self.provider.app_id,
            }
        )

    def handle_event(
        self,
        event: str,
        room_id: str,
        user_id: str | None,
        event_time: int | float | None,
    ) -> ServiceResult[bool]:
        """
        Apply one provider room event.

        Returns:
            ServiceResult with True if the lesson changed, False for a no-op
            (unknown event, replay, wrong state); LESSON_NOT_FOUND for an
            unknown room
        """
        log_context = {"event": event, "room_id": room_id, "user_id": user_id}

        with self.atomic():
            lesson = (
                Lesson.objects.select_for_update()
                .select_related("student", "accepted_teacher")
                .filter(meeting_room_id=room_id)
                .first()
            )
            if lesson is None:
                logger.warning("Room event for unknown room", extra=log_context)
                return ServiceResult.failure("Lesson not found", error_code="LESSON_NOT_FOUND")

            handler = ROOM_EVENT_HANDLERS.get(event)
            if handler is None:
                logger.info(f"Unhandled room event: {event}", extra=log_context)
                return ServiceResult.success(False)

            message_type = handler(lesson, self._event_datetime(event_time))

        if message_type is not None:
            self.notify_participants(lesson, message_type)

        logger.info(
            f"Room event {event} {'applied' if message_type else 'ignored'}",
            extra={**log_context, "lesson_id": str(lesson.id)},
        )
        return ServiceResult.success(message_type is not None)

    def notify_participants(self, lesson: Lesson, message_type: str) -> None:
        participants = [lesson.student]
        if lesson.accepted_teacher_id:
            participants.append(lesson.accepted_teacher)
        self.notifier.notify_many(
            participants,
            message_type,
            context={"subject": lesson.subject},
            data={"lesson_id": str(lesson.id)},
        )

    @staticmethod
    def _event_datetime(event_time: int | float | None) -> datetime:
        """
        Convert a provider epoch timestamp, seconds or milliseconds.

        Values that still cannot be represented fall back to the current
        time; a bad clock on the provider side never rejects the event.
        """
        now = datetime.now(tz=dt_timezone.utc)
        if event_time is None:
            return now
        if event_time > MILLISECOND_THRESHOLD:
            event_time = event_time / 1000
        try:
            return datetime.fromtimestamp(event_time, tz=dt_timezone.utc)
        except (ValueError, OverflowError, OSError):
            logger.warning(f"Unusable room event time {event_time}; using current time")
            return now
