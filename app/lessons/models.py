"""
Lesson models.

Lesson is the central entity of the marketplace: a tutoring request that
moves through negotiation, acceptance, the live session and settlement.

Models:
    Lesson: The lesson with its lifecycle, meeting and payment state
    LessonInterest: A teacher who opted in to a lesson request
    LessonOffer: A teacher's counter-offer price for a lesson

Concurrency:
    Lesson uses django-fsm's ConcurrentTransitionMixin. Every save filters
    the UPDATE on the status, meeting_status and payment_status values
    loaded from the database, so a writer working from a stale copy gets
    ConcurrentTransition instead of overwriting a concurrent transition.
    Each save runs in its own savepoint, so the losing writer can still
    read the row and answer cleanly inside an outer transaction.

Usage:
    from lessons.models import Lesson

    lesson.approve(teacher=teacher, final_price=Decimal("95.00"))
    lesson.save()

    lesson.cancel()          # TransitionNotAllowed once payment is settled
    lesson.cancel_meeting()
    lesson.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models, transaction
from django.utils import timezone

from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin, VersionedModelMixin

from lessons.states import (
    SETTLED_PAYMENT_STATUSES,
    LessonStatus,
    MeetingStatus,
    PaymentRecordStatus,
    PaymentStatus,
    RequestType,
)


def payment_not_settled(instance: Lesson) -> bool:
    """Cancellation guard: collected money has no refund path."""
    return instance.payment_status not in SETTLED_PAYMENT_STATUSES


class Lesson(ConcurrentTransitionMixin, UUIDPrimaryKeyMixin, VersionedModelMixin, BaseModel):
    """
    A tutoring lesson request and its lifecycle.

    State Flow (status):
        PENDING -> APPROVED -> COMPLETED
        PENDING/APPROVED -> CANCELED (not once payment is settled)

    Fields:
        student: Requesting student (never changes)
        request_type: direct (one target teacher) or open (matched by subject)
        interested_teachers: Teachers who opted in (through LessonInterest)
        accepted_teacher: Selected teacher, set exactly once on approval
        meeting_*: Video room and session timestamps
        payment_*: Gateway order, transaction and payout references
    """

    # ==========================================================================
    # Identity
    # ==========================================================================

    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="requested_lessons",
    )
    subject = models.CharField(max_length=100, db_index=True)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(max_digits=10, decimal_places=2)
    requested_date = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField()

    # ==========================================================================
    # Negotiation
    # ==========================================================================

    request_type = models.CharField(
        max_length=10,
        choices=RequestType.choices,
        default=RequestType.OPEN,
    )
    target_teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="direct_lesson_requests",
    )
    interested_teachers = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="LessonInterest",
        related_name="interested_lessons",
        blank=True,
    )
    accepted_teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="accepted_lessons",
    )

    status = FSMField(
        default=LessonStatus.PENDING,
        choices=LessonStatus.choices,
        db_index=True,
        help_text="Lifecycle state (managed by FSM)",
    )

    # ==========================================================================
    # Meeting
    # ==========================================================================

    meeting_room_id = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        unique=True,
        help_text="Video room id, lesson-<id>",
    )
    meeting_status = FSMField(
        default=MeetingStatus.UPCOMING,
        choices=MeetingStatus.choices,
    )
    meeting_started_at = models.DateTimeField(null=True, blank=True)
    meeting_ended_at = models.DateTimeField(null=True, blank=True)
    student_join_token = models.TextField(blank=True, default="")
    teacher_join_token = models.TextField(blank=True, default="")

    # ==========================================================================
    # Payment
    # ==========================================================================

    payment_status = FSMField(
        default=PaymentStatus.UNPAID,
        choices=PaymentStatus.choices,
        db_index=True,
    )
    payment_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    gateway_order_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    transaction_id = models.CharField(max_length=64, null=True, blank=True)
    payment_record_status = models.CharField(
        max_length=10,
        choices=PaymentRecordStatus.choices,
        null=True,
        blank=True,
    )
    amount_paid = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    teacher_payout_id = models.CharField(max_length=64, null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    released_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # Lifecycle timestamps
    # ==========================================================================

    approved_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["student", "status"], name="lesson_student_status_idx"),
            models.Index(fields=["subject", "status"], name="lesson_subject_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="lesson_price_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(duration_minutes__gt=0),
                name="lesson_duration_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Lesson({self.id}, {self.subject}, {self.status})"

    def save(self, *args, **kwargs):
        # Own savepoint: a ConcurrentTransition from a stale copy must not
        # poison the caller's transaction
        with transaction.atomic():
            super().save(*args, **kwargs)

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @property
    def is_direct(self) -> bool:
        return self.request_type == RequestType.DIRECT

    @property
    def room_id(self) -> str:
        return f"lesson-{self.id}"

    def is_interested(self, teacher) -> bool:
        return self.interests.filter(teacher=teacher).exists()

    def is_participant(self, user) -> bool:
        return user.pk in (self.student_id, self.accepted_teacher_id)

    def join_token_for(self, user) -> str:
        """The caller's own join token; other participants' tokens are never returned."""
        if user.pk == self.student_id:
            return self.student_join_token
        if user.pk == self.accepted_teacher_id:
            return self.teacher_join_token
        return ""

    # ==========================================================================
    # Lifecycle transitions
    # ==========================================================================

    @transition(field=status, source=LessonStatus.PENDING, target=LessonStatus.APPROVED)
    def approve(self, teacher, final_price=None):
        """Select a teacher; the price is locked from here on."""
        self.accepted_teacher = teacher
        if final_price is not None:
            self.price = final_price
        self.approved_at = timezone.now()

    @transition(field=status, source=LessonStatus.APPROVED, target=LessonStatus.COMPLETED)
    def complete(self):
        self.completed_at = timezone.now()

    @transition(
        field=status,
        source=[LessonStatus.PENDING, LessonStatus.APPROVED],
        target=LessonStatus.CANCELED,
        conditions=[payment_not_settled],
    )
    def cancel(self):
        self.canceled_at = timezone.now()

    # ==========================================================================
    # Meeting transitions
    # ==========================================================================

    @transition(field=meeting_status, source=MeetingStatus.UPCOMING, target=MeetingStatus.ONGOING)
    def start_meeting(self, started_at=None):
        self.meeting_started_at = started_at or timezone.now()

    @transition(
        field=meeting_status,
        source=[MeetingStatus.UPCOMING, MeetingStatus.ONGOING],
        target=MeetingStatus.FINISHED,
    )
    def finish_meeting(self, ended_at=None):
        self.meeting_ended_at = ended_at or timezone.now()

    @transition(
        field=meeting_status,
        source=[MeetingStatus.UPCOMING, MeetingStatus.ONGOING],
        target=MeetingStatus.CANCELED,
    )
    def cancel_meeting(self):
        pass

    # ==========================================================================
    # Payment transitions
    # ==========================================================================

    @transition(
        field=payment_status,
        source=[PaymentStatus.UNPAID, PaymentStatus.PENDING],
        target=PaymentStatus.PENDING,
    )
    def start_payment(self, gateway_order_id, amount):
        self.gateway_order_id = str(gateway_order_id)
        self.payment_amount = amount
        self.payment_record_status = PaymentRecordStatus.PENDING

    @transition(
        field=payment_status,
        source=[PaymentStatus.PENDING, PaymentStatus.UNPAID],
        target=PaymentStatus.PAID,
    )
    def confirm_payment(self, transaction_id, amount_paid):
        self.transaction_id = str(transaction_id)
        self.amount_paid = amount_paid
        self.payment_record_status = PaymentRecordStatus.PAID
        self.paid_at = timezone.now()

    @transition(field=payment_status, source=PaymentStatus.PENDING, target=PaymentStatus.UNPAID)
    def fail_payment(self, transaction_id=None):
        if transaction_id is not None:
            self.transaction_id = str(transaction_id)
        self.payment_record_status = PaymentRecordStatus.FAILED

    @transition(field=payment_status, source=PaymentStatus.PAID, target=PaymentStatus.HELD)
    def claim_release(self):
        """Reserve the payout; saving is the conditional claim."""

    @transition(field=payment_status, source=PaymentStatus.HELD, target=PaymentStatus.RELEASED)
    def release_payment(self, payout_id):
        self.teacher_payout_id = str(payout_id)
        self.payment_record_status = PaymentRecordStatus.RELEASED
        self.released_at = timezone.now()

    @transition(field=payment_status, source=PaymentStatus.HELD, target=PaymentStatus.PAID)
    def abort_release(self):
        pass


class LessonInterest(models.Model):
    """
    A teacher's opt-in to a lesson request.

    Unique per (lesson, teacher), so concurrent or repeated interest from
    the same teacher can never create a duplicate.
    """

    lesson = models.ForeignKey(Lesson, on_delete=models.CASCADE, related_name="interests")
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="lesson_interests",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["lesson", "teacher"],
                name="unique_lesson_interest",
            ),
        ]

    def __str__(self) -> str:
        return f"Interest({self.lesson_id}, {self.teacher_id})"


class LessonOffer(BaseModel):
    """A counter-offer; one per (lesson, teacher), updated in place."""

    lesson = models.ForeignKey(Lesson, on_delete=models.CASCADE, related_name="offers")
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="lesson_offers",
    )
    proposed_price = models.DecimalField(max_digits=10, decimal_places=2)
    message = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["lesson", "teacher"],
                name="unique_lesson_offer",
            ),
        ]

    def __str__(self) -> str:
        return f"Offer({self.lesson_id}, {self.teacher_id}, {self.proposed_price})"
