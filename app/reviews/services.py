"""
Review service.

Services:
    ReviewService: Create and delete lesson reviews, keep teacher ratings current

Rules:
    - Only the lesson's student may review, only once the lesson is completed
    - One review per lesson (enforced by the one-to-one column as well)
    - Creating a review awards POINTS_REVIEW_CREATED points to the student
    - The teacher's average_rating and total_reviews are recomputed from the
      stored reviews after every create and delete

Usage:
    from reviews.dependencies import get_review_service

    result = get_review_service().create_review(request.user, lesson_id, rating=5)
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.db.models import Avg, Count, QuerySet

from core.services import BaseService, ServiceResult

from authentication.models import TeacherProfile, UserRole
from lessons.models import Lesson
from lessons.states import LessonStatus
from notifications.messages import MessageType
from points.services import PointsService
from reviews.models import Review

if TYPE_CHECKING:
    from uuid import UUID

    from authentication.models import User
    from notifications.services import NotificationDispatcher


RATING_PRECISION = Decimal("0.1")


def _already_reviewed() -> ServiceResult:
    return ServiceResult.failure(
        "This lesson has already been reviewed",
        error_code="REVIEW_EXISTS",
    )


class ReviewService(BaseService):
    def __init__(
        self,
        notifier: NotificationDispatcher,
        points: type[PointsService] = PointsService,
    ):
        self.notifier = notifier
        self.points = points

    def create_review(
        self,
        student: User,
        lesson_id: UUID,
        rating: int,
        comment: str = "",
    ) -> ServiceResult[Review]:
        """
        Review a completed lesson.

        Error codes:
            ROLE_NOT_ALLOWED: Caller is not a student
            LESSON_NOT_FOUND: No such lesson
            NOT_LESSON_OWNER: Caller did not request the lesson
            INVALID_STATE: Lesson is not completed
            REVIEW_EXISTS: The lesson already has a review
        """
        if not student.is_student:
            return ServiceResult.failure("Only students can write reviews", error_code="ROLE_NOT_ALLOWED")

        lesson = Lesson.objects.select_related("accepted_teacher").filter(pk=lesson_id).first()
        if lesson is None:
            return ServiceResult.failure("Lesson not found", error_code="LESSON_NOT_FOUND")
        if lesson.student_id != student.id:
            return ServiceResult.failure(
                "You can only review your own lessons",
                error_code="NOT_LESSON_OWNER",
            )
        if lesson.status != LessonStatus.COMPLETED or lesson.accepted_teacher_id is None:
            return ServiceResult.failure(
                "Lessons can only be reviewed after completion",
                error_code="INVALID_STATE",
            )
        if Review.objects.filter(lesson=lesson).exists():
            return _already_reviewed()

        try:
            with self.atomic():
                review = Review.objects.create(
                    lesson=lesson,
                    student=student,
                    teacher=lesson.accepted_teacher,
                    rating=rating,
                    comment=comment.strip(),
                )
        except IntegrityError:
            return _already_reviewed()

        self.recalculate_teacher_rating(review.teacher_id)
        self.points.add_points(student, settings.POINTS_REVIEW_CREATED, reason=f"review of lesson {lesson.id}")

        self.notifier.notify(
            lesson.accepted_teacher,
            MessageType.REVIEW_RECEIVED,
            context={
                "student_name": student.get_full_name(),
                "subject": lesson.subject,
                "rating": rating,
            },
            sender=student,
            data={"lesson_id": str(lesson.id), "review_id": str(review.id)},
        )

        self.get_logger().info(
            f"Review {review.id} for lesson {lesson.id}: {rating}/5",
            extra={"lesson_id": str(lesson.id), "teacher_id": review.teacher_id},
        )
        return ServiceResult.success(review)

    def delete_review(self, user: User, review: Review) -> ServiceResult[None]:
        """
        Error codes:
            NOT_REVIEW_OWNER: Caller did not write the review
        """
        if review.student_id != user.id:
            return ServiceResult.failure(
                "You can only delete your own reviews",
                error_code="NOT_REVIEW_OWNER",
            )

        teacher_id = review.teacher_id
        review.delete()
        self.recalculate_teacher_rating(teacher_id)

        self.get_logger().info(
            f"Review deleted by user {user.id}",
            extra={"teacher_id": teacher_id},
        )
        return ServiceResult.success(None)

    @staticmethod
    def recalculate_teacher_rating(teacher_id: int) -> None:
        """Store the teacher's mean rating (one decimal) and review count; zeros when none remain."""
        stats = Review.objects.filter(teacher_id=teacher_id).aggregate(avg=Avg("rating"), total=Count("id"))

        average = Decimal("0")
        if stats["avg"] is not None:
            average = Decimal(str(stats["avg"])).quantize(RATING_PRECISION, rounding=ROUND_HALF_UP)

        TeacherProfile.objects.filter(user_id=teacher_id).update(
            average_rating=average,
            total_reviews=stats["total"],
        )

    @staticmethod
    def teacher_reviews(teacher_id: int) -> ServiceResult[QuerySet[Review]]:
        """
        Error codes:
            TEACHER_NOT_FOUND: No teacher with this id
        """
        if not get_user_model().objects.filter(pk=teacher_id, role=UserRole.TEACHER).exists():
            return ServiceResult.failure("Teacher not found", error_code="TEACHER_NOT_FOUND")
        return ServiceResult.success(
            Review.objects.filter(teacher_id=teacher_id).select_related("student", "teacher", "lesson")
        )
