"""
Review model.

One review per lesson, written by the lesson's student about the accepted
teacher. The teacher's aggregate (TeacherProfile.average_rating and
total_reviews) is recomputed by ReviewService on create and delete.
"""

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from core.models import BaseModel

MIN_RATING = 1
MAX_RATING = 5
MAX_COMMENT_LENGTH = 300


class Review(BaseModel):
    lesson = models.OneToOneField(
        "lessons.Lesson",
        on_delete=models.CASCADE,
        related_name="review",
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="written_reviews",
    )
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_reviews",
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(MIN_RATING), MaxValueValidator(MAX_RATING)],
    )
    comment = models.CharField(max_length=MAX_COMMENT_LENGTH, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["teacher", "-created_at"], name="review_teacher_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(rating__gte=MIN_RATING) & models.Q(rating__lte=MAX_RATING),
                name="review_rating_range",
            ),
        ]

    def __str__(self) -> str:
        return f"Review({self.lesson_id}, {self.rating}/5)"
