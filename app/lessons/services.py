"""
Lesson lifecycle service.

Services:
    LessonService: Request, negotiation, acceptance, completion and cancellation

State Flow (Lesson.status):
    (none)   --create_lesson_request-->  pending
    pending  --respond (accept)-------->  pending   (teacher added to interested)
    pending  --choose_teacher---------->  approved  (teacher must be interested)
    approved --complete_lesson--------->  completed
    pending/approved --cancel_lesson--->  canceled  (not once payment is settled)

Every transition is saved through django-fsm's ConcurrentTransitionMixin,
so a request acting on a stale copy of the lesson fails with
CONCURRENT_MODIFICATION instead of overwriting another request's change.

Side effects that are not part of the transition (notifications, room
provisioning) never undo it: their failures are logged. A failed payout
during completion is reported to the caller while the completion stays.

Usage:
    from lessons.dependencies import get_lesson_service

    service = get_lesson_service()
    result = service.choose_teacher(request.user, lesson, teacher_id)
    if not result.success:
        return error_response(result)
"""

from __future__ import annotations

import logging
from decimal import Decimal
from functools import reduce
from operator import or_
from typing import TYPE_CHECKING

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Q, QuerySet
from django_fsm import ConcurrentTransition, TransitionNotAllowed, can_proceed

from core.services import BaseService, ServiceResult

from authentication.models import UserRole
from lessons.matching import find_matching_teachers
from lessons.models import Lesson, LessonInterest, LessonOffer
from lessons.states import (
    SETTLED_PAYMENT_STATUSES,
    LessonStatus,
    MeetingStatus,
    PaymentStatus,
    RequestType,
)
from meetings.exceptions import MeetingProviderError
from notifications.messages import MessageType
from points.services import PointsService

if TYPE_CHECKING:
    from datetime import datetime

    from authentication.models import User
    from meetings.services import MeetingService
    from notifications.services import NotificationDispatcher
    from payments.services import SettlementService


logger = logging.getLogger(__name__)


RESPONSE_ACCEPT = "accept"
RESPONSE_REJECT = "reject"


def _concurrent_failure() -> ServiceResult:
    return ServiceResult.failure(
        "The lesson was modified by another request; reload and retry",
        error_code="CONCURRENT_MODIFICATION",
    )


def _not_owner() -> ServiceResult:
    return ServiceResult.failure(
        "Only the student who requested this lesson can do this",
        error_code="NOT_LESSON_OWNER",
    )


def _subject_filter(subjects: list[str]) -> Q:
    """Case-insensitive match of Lesson.subject against any of `subjects`."""
    clauses = [Q(subject__iexact=str(s).strip()) for s in subjects if str(s).strip()]
    if not clauses:
        return Q(pk__in=[])
    return reduce(or_, clauses)


class LessonService(BaseService):
    """
    Lesson lifecycle engine.

    Collaborators are injected; see lessons.dependencies for the
    production wiring and the tests for in-memory fakes.
    """

    def __init__(
        self,
        meetings: MeetingService,
        notifier: NotificationDispatcher,
        settlement: SettlementService,
        points: type[PointsService] = PointsService,
    ):
        self.meetings = meetings
        self.notifier = notifier
        self.settlement = settlement
        self.points = points

    # =========================================================================
    # Request
    # =========================================================================

    def create_lesson_request(
        self,
        student: User,
        *,
        subject: str,
        title: str,
        price: Decimal,
        requested_date: datetime,
        duration_minutes: int,
        description: str = "",
        target_teacher_id: int | None = None,
    ) -> ServiceResult[Lesson]:
        """
        Create a pending lesson and notify the teachers who should see it.

        A direct request (target_teacher_id given) notifies only that
        teacher. An open request notifies every matching teacher (see
        lessons.matching).

        Error codes:
            ROLE_NOT_ALLOWED: Caller is not a student
            TEACHER_NOT_FOUND: Direct request target is not a teacher
        """
        if not student.is_student:
            return ServiceResult.failure(
                "Only students can request lessons",
                error_code="ROLE_NOT_ALLOWED",
            )

        target_teacher = None
        if target_teacher_id is not None:
            target_teacher = (
                get_user_model()
                .objects.filter(pk=target_teacher_id, role=UserRole.TEACHER, is_active=True)
                .first()
            )
            if target_teacher is None:
                return ServiceResult.failure("Teacher not found", error_code="TEACHER_NOT_FOUND")

        lesson = Lesson.objects.create(
            student=student,
            subject=subject.strip(),
            title=title,
            description=description,
            price=price,
            requested_date=requested_date,
            duration_minutes=duration_minutes,
            request_type=RequestType.DIRECT if target_teacher else RequestType.OPEN,
            target_teacher=target_teacher,
        )

        if target_teacher is not None:
            recipients = [target_teacher]
        else:
            recipients = find_matching_teachers(lesson.subject, lesson.price, lesson.duration_minutes)

        self.notifier.notify_many(
            recipients,
            MessageType.LESSON_REQUEST,
            context={
                "subject": lesson.subject,
                "price": str(lesson.price),
                "requested_date": lesson.requested_date.strftime("%Y-%m-%d %H:%M"),
                "student_name": student.get_full_name(),
            },
            sender=student,
            data={"lesson_id": str(lesson.id)},
        )

        self.get_logger().info(
            f"Lesson {lesson.id} requested ({lesson.request_type}), {len(recipients)} teacher(s) notified",
            extra={"lesson_id": str(lesson.id), "student_id": student.id},
        )
        return ServiceResult.success(lesson)

    @staticmethod
    def list_pending_requests(teacher: User) -> QuerySet[Lesson]:
        """
        Pending lessons a teacher can respond to.

        Open requests in a subject the teacher teaches, plus direct
        requests addressed to them; lessons that already have an accepted
        teacher are excluded.
        """
        subjects = list(getattr(getattr(teacher, "teacher_profile", None), "subjects", None) or [])
        open_requests = Q(request_type=RequestType.OPEN) & _subject_filter(subjects)
        direct_requests = Q(request_type=RequestType.DIRECT, target_teacher=teacher)

        return (
            Lesson.objects.filter(
                open_requests | direct_requests,
                status=LessonStatus.PENDING,
                accepted_teacher__isnull=True,
            )
            .select_related("student", "target_teacher")
            .order_by("-created_at")
        )

    def respond_to_lesson_request(self, teacher: User, lesson: Lesson, response: str) -> ServiceResult[dict]:
        """
        Accept (express interest in) or reject a lesson request.

        Rejecting is an acknowledgement only. Accepting twice is a no-op.

        Error codes:
            ROLE_NOT_ALLOWED: Caller is not a teacher
            PERMISSION_DENIED: Direct request addressed to another teacher
            INVALID_RESPONSE: Response is not accept/reject
            INVALID_STATE: Lesson is no longer pending
        """
        if not teacher.is_teacher:
            return ServiceResult.failure(
                "Only teachers can respond to lesson requests",
                error_code="ROLE_NOT_ALLOWED",
            )
        if lesson.is_direct and lesson.target_teacher_id != teacher.id:
            return ServiceResult.failure(
                "This request was sent to another teacher",
                error_code="PERMISSION_DENIED",
            )
        if response not in (RESPONSE_ACCEPT, RESPONSE_REJECT):
            return ServiceResult.failure(
                "Response must be 'accept' or 'reject'",
                error_code="INVALID_RESPONSE",
            )

        if response == RESPONSE_REJECT:
            self.get_logger().info(
                f"Teacher {teacher.id} declined lesson {lesson.id}",
                extra={"lesson_id": str(lesson.id), "teacher_id": teacher.id},
            )
            return ServiceResult.success({"status": "rejected", "lesson_id": str(lesson.id)})

        if lesson.status != LessonStatus.PENDING:
            return ServiceResult.failure(
                f"Cannot respond to a {lesson.status} lesson",
                error_code="INVALID_STATE",
            )

        _, created = LessonInterest.objects.get_or_create(lesson=lesson, teacher=teacher)
        if created:
            self.notifier.notify(
                lesson.student,
                MessageType.TEACHER_INTEREST,
                context={"teacher_name": teacher.get_full_name(), "subject": lesson.subject},
                sender=teacher,
                data={"lesson_id": str(lesson.id), "teacher_id": str(teacher.id)},
            )
            self.get_logger().info(
                f"Teacher {teacher.id} interested in lesson {lesson.id}",
                extra={"lesson_id": str(lesson.id), "teacher_id": teacher.id},
            )

        return ServiceResult.success({"status": "accepted", "lesson_id": str(lesson.id)})

    # =========================================================================
    # Negotiation
    # =========================================================================

    def counter_offer(
        self,
        teacher: User,
        lesson: Lesson,
        proposed_price: Decimal,
        message: str = "",
    ) -> ServiceResult[LessonOffer]:
        """
        Create or replace the teacher's price offer for a pending lesson.

        Error codes:
            INVALID_STATE: Lesson is no longer pending
            TEACHER_NOT_INTERESTED: Teacher has not accepted the request
        """
        if lesson.status != LessonStatus.PENDING:
            return ServiceResult.failure(
                "Offers can only be made on pending lessons",
                error_code="INVALID_STATE",
            )
        if not lesson.is_interested(teacher):
            return ServiceResult.failure(
                "Accept the lesson request before making an offer",
                error_code="TEACHER_NOT_INTERESTED",
            )

        offer, _ = LessonOffer.objects.update_or_create(
            lesson=lesson,
            teacher=teacher,
            defaults={"proposed_price": proposed_price, "message": message},
        )

        self.notifier.notify(
            lesson.student,
            MessageType.COUNTER_OFFER,
            context={
                "teacher_name": teacher.get_full_name(),
                "proposed_price": str(proposed_price),
                "offer_message": message,
                "subject": lesson.subject,
            },
            sender=teacher,
            data={"lesson_id": str(lesson.id), "teacher_id": str(teacher.id)},
        )
        return ServiceResult.success(offer)

    def get_interested_teachers(self, student: User, lesson: Lesson) -> ServiceResult[QuerySet]:
        if lesson.student_id != student.id:
            return _not_owner()
        teachers = (
            get_user_model()
            .objects.filter(lesson_interests__lesson=lesson)
            .select_related("teacher_profile")
            .order_by("lesson_interests__created_at")
        )
        return ServiceResult.success(teachers)

    def get_offers(self, student: User, lesson: Lesson) -> ServiceResult[QuerySet]:
        if lesson.student_id != student.id:
            return _not_owner()
        return ServiceResult.success(lesson.offers.select_related("teacher").order_by("created_at"))

    def update_price(self, student: User, lesson: Lesson, new_price: Decimal) -> ServiceResult[Lesson]:
        """
        Change the requested price before a teacher is selected.

        Error codes:
            PRICE_LOCKED: A teacher was accepted or the lesson is closed
        """
        if lesson.student_id != student.id:
            return _not_owner()
        if lesson.status != LessonStatus.PENDING or lesson.accepted_teacher_id is not None:
            return ServiceResult.failure(
                "Price cannot change after a teacher is selected",
                error_code="PRICE_LOCKED",
            )

        lesson.price = new_price
        try:
            lesson.save(update_fields=["price", "updated_at"])
        except ConcurrentTransition:
            lesson.refresh_from_db()
            return ServiceResult.failure(
                "Price cannot change after a teacher is selected",
                error_code="PRICE_LOCKED",
            )
        return ServiceResult.success(lesson)

    # =========================================================================
    # Acceptance
    # =========================================================================

    def choose_teacher(
        self,
        student: User,
        lesson: Lesson,
        teacher_id: int,
        final_price: Decimal | None = None,
    ) -> ServiceResult[Lesson]:
        """
        Approve the lesson with one of the interested teachers.

        Price: final_price if given, else the teacher's offer, else the
        requested price. After approval a meeting room is provisioned;
        provider failures there are logged and retried on the first
        join-token request.

        Error codes:
            NOT_LESSON_OWNER: Caller is not the lesson's student
            INVALID_STATE: Lesson is not pending (already approved included)
            TEACHER_NOT_INTERESTED: Teacher has not accepted the request
            CONCURRENT_MODIFICATION: Another request approved or canceled it first
        """
        if lesson.student_id != student.id:
            return _not_owner()
        if lesson.status != LessonStatus.PENDING:
            return ServiceResult.failure(
                f"Cannot choose a teacher for a {lesson.status} lesson",
                error_code="INVALID_STATE",
            )

        interest = (
            LessonInterest.objects.filter(lesson=lesson, teacher_id=teacher_id)
            .select_related("teacher")
            .first()
        )
        if interest is None:
            return ServiceResult.failure(
                "Teacher has not accepted this lesson request",
                error_code="TEACHER_NOT_INTERESTED",
            )
        teacher = interest.teacher

        if final_price is None:
            offer = LessonOffer.objects.filter(lesson=lesson, teacher=teacher).first()
            final_price = offer.proposed_price if offer is not None else lesson.price

        try:
            lesson.approve(teacher=teacher, final_price=final_price)
            lesson.save()
        except (TransitionNotAllowed, ConcurrentTransition):
            lesson.refresh_from_db()
            return _concurrent_failure()

        log_context = {"lesson_id": str(lesson.id), "teacher_id": teacher.id}
        self.get_logger().info(f"Lesson {lesson.id} approved", extra=log_context)

        try:
            self.meetings.provision_room(lesson)
        except MeetingProviderError as e:
            logger.error(f"Room provisioning failed for lesson {lesson.id}: {e}", extra=log_context)

        self.notifier.notify(
            teacher,
            MessageType.LESSON_APPROVED,
            context={"student_name": student.get_full_name(), "subject": lesson.subject},
            sender=student,
            data={"lesson_id": str(lesson.id)},
        )
        return ServiceResult.success(lesson)

    def get_join_token(self, user: User, lesson: Lesson) -> ServiceResult[dict]:
        return self.meetings.get_join_token(user, lesson)

    # =========================================================================
    # Completion / cancellation
    # =========================================================================

    def complete_lesson(self, teacher: User, lesson: Lesson) -> ServiceResult[Lesson]:
        """
        Mark an approved lesson completed and settle it.

        The student earns POINTS_LESSON_COMPLETED points. If the lesson is
        paid and the teacher has a payout recipient, the payment is
        released; a failed release is returned (PAYOUT_FAILED) but the
        completion is kept and the payment stays paid for a retry.

        Error codes:
            NOT_ACCEPTED_TEACHER: Caller is not the accepted teacher
            INVALID_STATE: Lesson is not approved
        """
        if lesson.accepted_teacher_id is None or lesson.accepted_teacher_id != teacher.id:
            return ServiceResult.failure(
                "Only the accepted teacher can complete this lesson",
                error_code="NOT_ACCEPTED_TEACHER",
            )
        if lesson.status != LessonStatus.APPROVED:
            return ServiceResult.failure(
                f"Cannot complete a {lesson.status} lesson",
                error_code="INVALID_STATE",
            )

        try:
            lesson.complete()
            if lesson.meeting_status in (MeetingStatus.UPCOMING, MeetingStatus.ONGOING):
                lesson.finish_meeting()
            lesson.save()
        except (TransitionNotAllowed, ConcurrentTransition):
            lesson.refresh_from_db()
            return _concurrent_failure()

        points = settings.POINTS_LESSON_COMPLETED
        self.points.add_points(lesson.student, points, reason=f"lesson {lesson.id} completed")
        self.notifier.notify(
            lesson.student,
            MessageType.LESSON_COMPLETED,
            context={"subject": lesson.subject, "points": points},
            sender=teacher,
            data={"lesson_id": str(lesson.id)},
        )
        self.get_logger().info(
            f"Lesson {lesson.id} completed",
            extra={"lesson_id": str(lesson.id), "teacher_id": teacher.id},
        )

        profile = getattr(teacher, "teacher_profile", None)
        if lesson.payment_status == PaymentStatus.PAID and profile is not None and profile.has_payout_recipient:
            release = self.settlement.release_payment_to_teacher(lesson)
            if not release.success:
                return release

        return ServiceResult.success(lesson)

    def cancel_lesson(self, student: User, lesson: Lesson) -> ServiceResult[Lesson]:
        """
        Cancel a pending or approved lesson.

        The student loses POINTS_LESSON_CANCELED points (never below zero)
        and the accepted teacher, or every interested teacher, is notified.

        Error codes:
            NOT_LESSON_OWNER: Caller is not the lesson's student
            INVALID_STATE: Lesson is already completed or canceled
            ALREADY_PAID: Payment was collected; there is no refund path
        """
        if lesson.student_id != student.id:
            return _not_owner()
        if lesson.status not in (LessonStatus.PENDING, LessonStatus.APPROVED):
            return ServiceResult.failure(
                f"Cannot cancel a {lesson.status} lesson",
                error_code="INVALID_STATE",
            )
        if lesson.payment_status in SETTLED_PAYMENT_STATUSES or not can_proceed(lesson.cancel):
            return ServiceResult.failure(
                "A paid lesson cannot be canceled",
                error_code="ALREADY_PAID",
            )

        try:
            lesson.cancel()
            if lesson.meeting_status in (MeetingStatus.UPCOMING, MeetingStatus.ONGOING):
                lesson.cancel_meeting()
            lesson.save()
        except (TransitionNotAllowed, ConcurrentTransition):
            lesson.refresh_from_db()
            return _concurrent_failure()

        self.points.deduct_points(
            student,
            settings.POINTS_LESSON_CANCELED,
            reason=f"lesson {lesson.id} canceled",
        )
        self.notifier.notify_many(
            self._cancellation_recipients(lesson),
            MessageType.LESSON_CANCELED,
            context={"subject": lesson.subject, "student_name": student.get_full_name()},
            sender=student,
            data={"lesson_id": str(lesson.id)},
        )
        self.get_logger().info(
            f"Lesson {lesson.id} canceled",
            extra={"lesson_id": str(lesson.id), "student_id": student.id},
        )
        return ServiceResult.success(lesson)

    @staticmethod
    def _cancellation_recipients(lesson: Lesson) -> list:
        if lesson.accepted_teacher_id:
            return [lesson.accepted_teacher]
        recipients = list(lesson.interested_teachers.all())
        if lesson.target_teacher_id and lesson.target_teacher not in recipients:
            recipients.append(lesson.target_teacher)
        return recipients

    # =========================================================================
    # Queries
    # =========================================================================

    @staticmethod
    def visible_lessons(user: User) -> QuerySet[Lesson] | None:
        """
        Lessons the user may list, or None for a role with no lesson access.

        Students see their own lessons; teachers see lessons in subjects
        they teach and lessons they are interested in, targeted by or
        accepted for; admins see everything.
        """
        queryset = Lesson.objects.select_related("student", "accepted_teacher", "target_teacher")

        if user.is_platform_admin:
            return queryset
        if user.is_student:
            return queryset.filter(student=user)
        if user.is_teacher:
            subjects = list(getattr(getattr(user, "teacher_profile", None), "subjects", None) or [])
            return queryset.filter(
                _subject_filter(subjects)
                | Q(interests__teacher=user)
                | Q(accepted_teacher=user)
                | Q(target_teacher=user)
            ).distinct()
        return None

    def get_lesson(self, user: User, lesson: Lesson) -> ServiceResult[Lesson]:
        """
        Error codes:
            NOT_LESSON_PARTICIPANT: Caller may not see this lesson
        """
        if self._can_view(user, lesson):
            return ServiceResult.success(lesson)
        return ServiceResult.failure(
            "You do not have access to this lesson",
            error_code="NOT_LESSON_PARTICIPANT",
        )

    @staticmethod
    def _can_view(user: User, lesson: Lesson) -> bool:
        if user.is_platform_admin or lesson.student_id == user.id:
            return True
        if not user.is_teacher:
            return False
        if user.id in (lesson.accepted_teacher_id, lesson.target_teacher_id):
            return True
        if lesson.is_interested(user):
            return True
        profile = getattr(user, "teacher_profile", None)
        return (
            lesson.status == LessonStatus.PENDING
            and not lesson.is_direct
            and profile is not None
            and profile.teaches(lesson.subject)
        )

