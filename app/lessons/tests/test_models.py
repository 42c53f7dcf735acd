"""Tests for Lesson state transitions."""

from decimal import Decimal

import pytest
from django.db import transaction
from django_fsm import ConcurrentTransition, TransitionNotAllowed, can_proceed

from lessons.models import Lesson
from lessons.states import LessonStatus, MeetingStatus, PaymentRecordStatus, PaymentStatus
from lessons.tests.factories import LessonFactory


pytestmark = pytest.mark.django_db


class TestLifecycle:
    def test_approve_locks_in_teacher_and_price(self, teacher):
        lesson = LessonFactory()

        lesson.approve(teacher=teacher, final_price=Decimal("80.00"))
        lesson.save()

        lesson.refresh_from_db()
        assert lesson.status == LessonStatus.APPROVED
        assert lesson.accepted_teacher == teacher
        assert lesson.price == Decimal("80.00")
        assert lesson.version == 2

    def test_completed_lesson_cannot_be_approved(self, teacher):
        lesson = LessonFactory(completed=True)

        with pytest.raises(TransitionNotAllowed):
            lesson.approve(teacher=teacher)

    @pytest.mark.parametrize("payment_status", [PaymentStatus.PAID, PaymentStatus.HELD, PaymentStatus.RELEASED])
    def test_settled_payment_blocks_cancel(self, payment_status):
        lesson = LessonFactory(approved=True, payment_status=payment_status)

        assert not can_proceed(lesson.cancel)

    def test_unpaid_approved_lesson_can_cancel(self):
        lesson = LessonFactory(approved=True)

        lesson.cancel()
        lesson.cancel_meeting()
        lesson.save()

        lesson.refresh_from_db()
        assert lesson.status == LessonStatus.CANCELED
        assert lesson.meeting_status == MeetingStatus.CANCELED

    def test_stale_copy_cannot_overwrite_transition(self, teacher):
        lesson = LessonFactory(interested=[teacher])
        stale = Lesson.objects.get(pk=lesson.pk)

        lesson.cancel()
        lesson.save()

        stale.approve(teacher=teacher)
        with pytest.raises(ConcurrentTransition):
            stale.save()

        lesson.refresh_from_db()
        assert lesson.status == LessonStatus.CANCELED
        assert lesson.accepted_teacher is None

    def test_stale_save_leaves_outer_transaction_usable(self, teacher):
        lesson = LessonFactory(interested=[teacher])
        stale = Lesson.objects.get(pk=lesson.pk)
        lesson.cancel()
        lesson.save()

        with transaction.atomic():
            stale.approve(teacher=teacher)
            with pytest.raises(ConcurrentTransition):
                stale.save()

            current = Lesson.objects.get(pk=lesson.pk)

        assert current.status == LessonStatus.CANCELED


class TestVersion:
    def test_save_bumps_version_in_memory(self, teacher):
        lesson = LessonFactory(interested=[teacher])
        loaded = lesson.version

        lesson.approve(teacher=teacher)
        lesson.save()

        assert lesson.version == loaded + 1
        assert isinstance(lesson.version, int)
        assert lesson.status == LessonStatus.APPROVED

    def test_update_fields_save_bumps_version(self):
        lesson = LessonFactory()
        loaded = lesson.version

        lesson.title = "Renamed"
        lesson.save(update_fields=["title"])

        lesson.refresh_from_db()
        assert lesson.version == loaded + 1
        assert lesson.title == "Renamed"

    def test_failed_save_keeps_loaded_version(self, teacher):
        lesson = LessonFactory(interested=[teacher])
        stale = Lesson.objects.get(pk=lesson.pk)
        lesson.cancel()
        lesson.save()

        stale.approve(teacher=teacher)
        with pytest.raises(ConcurrentTransition):
            stale.save()

        assert stale.version == lesson.version - 1
        assert isinstance(stale.version, int)


class TestPaymentTransitions:
    def test_payment_happy_path(self):
        lesson = LessonFactory(approved=True)

        lesson.start_payment(gateway_order_id=1001, amount=lesson.price)
        lesson.confirm_payment(transaction_id=555, amount_paid=lesson.price)
        lesson.claim_release()
        lesson.release_payment(payout_id="po_1")
        lesson.save()

        lesson.refresh_from_db()
        assert lesson.payment_status == PaymentStatus.RELEASED
        assert lesson.payment_record_status == PaymentRecordStatus.RELEASED
        assert lesson.gateway_order_id == "1001"
        assert lesson.teacher_payout_id == "po_1"
        assert lesson.released_at is not None

    def test_failed_attempt_returns_to_unpaid(self):
        lesson = LessonFactory(approved=True, payment_pending=True)

        lesson.fail_payment(transaction_id=556)

        assert lesson.payment_status == PaymentStatus.UNPAID
        assert lesson.payment_record_status == PaymentRecordStatus.FAILED

    def test_release_requires_paid(self):
        lesson = LessonFactory(approved=True)

        with pytest.raises(TransitionNotAllowed):
            lesson.claim_release()

    def test_aborted_release_is_paid_again(self):
        lesson = LessonFactory(approved=True, paid=True)

        lesson.claim_release()
        lesson.abort_release()

        assert lesson.payment_status == PaymentStatus.PAID


class TestJoinTokens:
    def test_each_participant_gets_own_token(self, student, teacher, other_teacher):
        lesson = LessonFactory(student=student, approved=True, accepted_teacher=teacher)

        assert lesson.join_token_for(student) == "04student-token"
        assert lesson.join_token_for(teacher) == "04teacher-token"
        assert lesson.join_token_for(other_teacher) == ""
