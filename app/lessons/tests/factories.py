"""
Factory Boy factories for lesson models.

States are set directly on the FSM fields (they are not protected), so a
test can start from any point of the lifecycle.

Usage:
    from lessons.tests.factories import LessonFactory

    lesson = LessonFactory(student=student)                       # pending, open
    lesson = LessonFactory(approved=True, accepted_teacher=teacher)
    lesson = LessonFactory(completed=True, paid=True, accepted_teacher=teacher)
"""

import uuid
from datetime import timedelta
from decimal import Decimal

import factory
from django.utils import timezone

from authentication.tests.factories import StudentFactory, TeacherFactory
from lessons.models import Lesson, LessonInterest, LessonOffer
from lessons.states import (
    LessonStatus,
    MeetingStatus,
    PaymentRecordStatus,
    PaymentStatus,
    RequestType,
)


class LessonFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Lesson
        skip_postgeneration_save = True

    id = factory.LazyFunction(uuid.uuid4)
    student = factory.SubFactory(StudentFactory)
    subject = "Math"
    title = factory.Sequence(lambda n: f"Algebra session {n}")
    price = Decimal("100.00")
    requested_date = factory.LazyFunction(lambda: timezone.now() + timedelta(days=2))
    duration_minutes = 60
    request_type = RequestType.OPEN

    class Params:
        approved = factory.Trait(
            status=LessonStatus.APPROVED,
            accepted_teacher=factory.SubFactory(TeacherFactory),
            approved_at=factory.LazyFunction(timezone.now),
            meeting_room_id=factory.LazyAttribute(lambda o: f"lesson-{o.id}"),
            student_join_token="04student-token",
            teacher_join_token="04teacher-token",
        )
        completed = factory.Trait(
            approved=True,
            status=LessonStatus.COMPLETED,
            meeting_status=MeetingStatus.FINISHED,
            completed_at=factory.LazyFunction(timezone.now),
        )
        payment_pending = factory.Trait(
            payment_status=PaymentStatus.PENDING,
            payment_record_status=PaymentRecordStatus.PENDING,
            gateway_order_id=factory.Sequence(lambda n: str(9000 + n)),
            payment_amount=factory.SelfAttribute("price"),
        )
        paid = factory.Trait(
            payment_pending=True,
            payment_status=PaymentStatus.PAID,
            payment_record_status=PaymentRecordStatus.PAID,
            transaction_id=factory.Sequence(lambda n: str(7000 + n)),
            amount_paid=factory.SelfAttribute("price"),
            paid_at=factory.LazyFunction(timezone.now),
        )

    @factory.post_generation
    def interested(self, create, extracted, **kwargs):
        """LessonFactory(interested=[teacher, ...]); the accepted teacher is always interested."""
        if not create:
            return
        teachers = list(extracted or [])
        if self.accepted_teacher_id and self.accepted_teacher not in teachers:
            teachers.append(self.accepted_teacher)
        for teacher in teachers:
            LessonInterest.objects.get_or_create(lesson=self, teacher=teacher)


class LessonOfferFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = LessonOffer

    lesson = factory.SubFactory(LessonFactory)
    teacher = factory.SubFactory(TeacherFactory)
    proposed_price = Decimal("120.00")
    message = "I can do it for a bit more"
