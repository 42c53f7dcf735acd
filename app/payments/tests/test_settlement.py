"""Tests for SettlementService: initiation, callbacks and teacher payouts."""

from decimal import Decimal

import httpx
import pytest
from django.db import connection

from lessons.models import Lesson
from lessons.states import LessonStatus, PaymentRecordStatus, PaymentStatus
from lessons.tests.factories import LessonFactory
from notifications.messages import MessageType
from payments.adapters.paymob import PaymobAdapter, compute_callback_hmac
from payments.exceptions import PaymentGatewayRejectedError, PaymentGatewayUnavailableError
from payments.models import CallbackStatus, PaymentCallback
from payments.services import SettlementService
from payments.tests.fakes import HMAC_SECRET, transaction_callback


pytestmark = pytest.mark.django_db


# =============================================================================
# Initiate
# =============================================================================


class TestInitiatePayment:
    def test_creates_gateway_order_for_lesson_price(self, settlement, gateway, approved_lesson, student):
        result = settlement.initiate_payment(student, approved_lesson)

        assert result.success
        assert result.data["gateway_order_id"] == "1001"
        assert result.data["payment_url"].startswith("https://")
        assert gateway.payments == [
            {"amount": Decimal("100.00"), "merchant_order_id": str(approved_lesson.id), "email": student.email}
        ]

        approved_lesson.refresh_from_db()
        assert approved_lesson.payment_status == PaymentStatus.PENDING
        assert approved_lesson.payment_record_status == PaymentRecordStatus.PENDING
        assert approved_lesson.gateway_order_id == "1001"
        assert approved_lesson.payment_amount == Decimal("100.00")

    def test_rejects_lesson_without_chosen_teacher(self, settlement, gateway, student):
        lesson = LessonFactory(student=student)

        result = settlement.initiate_payment(student, lesson)

        assert result.error_code == "INVALID_STATE"
        assert gateway.payments == []
        lesson.refresh_from_db()
        assert lesson.payment_status == PaymentStatus.UNPAID

    def test_retry_while_pending_replaces_order(self, settlement, pending_lesson, student):
        result = settlement.initiate_payment(student, pending_lesson)

        assert result.success
        pending_lesson.refresh_from_db()
        assert pending_lesson.gateway_order_id == result.data["gateway_order_id"]

    def test_rejects_non_owner(self, settlement, gateway, approved_lesson, other_teacher):
        result = settlement.initiate_payment(other_teacher, approved_lesson)

        assert result.error_code == "NOT_LESSON_OWNER"
        assert gateway.payments == []

    @pytest.mark.parametrize("payment_status", [PaymentStatus.PAID, PaymentStatus.RELEASED])
    def test_rejects_already_paid(self, settlement, gateway, student, teacher, payment_status):
        lesson = LessonFactory(
            student=student, approved=True, accepted_teacher=teacher, paid=True, payment_status=payment_status
        )

        result = settlement.initiate_payment(student, lesson)

        assert result.error_code == "ALREADY_PAID"
        assert gateway.payments == []

    def test_rejects_canceled_lesson(self, settlement, gateway, student):
        lesson = LessonFactory(student=student, status=LessonStatus.CANCELED)

        result = settlement.initiate_payment(student, lesson)

        assert result.error_code == "INVALID_STATE"
        assert gateway.payments == []

    def test_gateway_failure_leaves_lesson_unchanged(self, settlement, gateway, approved_lesson, student):
        gateway.fail_payments_with = PaymentGatewayUnavailableError("Paymob unreachable")

        result = settlement.initiate_payment(student, approved_lesson)

        assert result.error_code == "PAYMENT_GATEWAY_ERROR"
        approved_lesson.refresh_from_db()
        assert approved_lesson.payment_status == PaymentStatus.UNPAID
        assert approved_lesson.gateway_order_id is None


# =============================================================================
# Callback
# =============================================================================


class TestPaymentCallback:
    def test_success_marks_lesson_paid(self, settlement, notifier, pending_lesson, student):
        payload, signature = transaction_callback(pending_lesson, transaction_id="txn-1")

        result = settlement.handle_payment_callback(payload, signature)

        assert result.success
        assert result.data["status"] == "processed"
        pending_lesson.refresh_from_db()
        assert pending_lesson.payment_status == PaymentStatus.PAID
        assert pending_lesson.payment_record_status == PaymentRecordStatus.PAID
        assert pending_lesson.status == LessonStatus.APPROVED
        assert pending_lesson.transaction_id == "txn-1"
        assert pending_lesson.amount_paid == Decimal("100.00")
        assert pending_lesson.paid_at is not None
        assert notifier.types_sent_to(student) == [MessageType.PAYMENT_RECEIVED]

        callback = PaymentCallback.objects.get(transaction_id="txn-1")
        assert callback.status == CallbackStatus.PROCESSED
        assert callback.lesson_id == pending_lesson.id

    def test_string_success_flag_is_accepted(self, settlement, pending_lesson):
        payload, _ = transaction_callback(pending_lesson)
        payload["obj"]["success"] = "true"

        result = settlement.handle_payment_callback(payload, compute_callback_hmac(payload["obj"], HMAC_SECRET))

        assert result.success
        pending_lesson.refresh_from_db()
        assert pending_lesson.payment_status == PaymentStatus.PAID

    def test_failure_returns_payment_to_unpaid(self, settlement, notifier, pending_lesson, student):
        payload, signature = transaction_callback(pending_lesson, success=False)

        result = settlement.handle_payment_callback(payload, signature)

        assert result.success
        pending_lesson.refresh_from_db()
        assert pending_lesson.payment_status == PaymentStatus.UNPAID
        assert pending_lesson.payment_record_status == PaymentRecordStatus.FAILED
        assert pending_lesson.status == LessonStatus.APPROVED
        assert notifier.types_sent_to(student) == [MessageType.PAYMENT_FAILED]

    def test_invalid_signature_changes_nothing(self, settlement, notifier, pending_lesson):
        payload, _ = transaction_callback(pending_lesson)

        result = settlement.handle_payment_callback(payload, "0" * 128)

        assert result.error_code == "INVALID_SIGNATURE"
        pending_lesson.refresh_from_db()
        assert pending_lesson.payment_status == PaymentStatus.PENDING
        assert PaymentCallback.objects.count() == 0
        assert notifier.calls == []

    def test_missing_signature_is_rejected(self, settlement, pending_lesson):
        payload, _ = transaction_callback(pending_lesson)

        result = settlement.handle_payment_callback(payload, None)

        assert result.error_code == "INVALID_SIGNATURE"

    def test_tampered_amount_is_rejected(self, settlement, pending_lesson):
        payload, signature = transaction_callback(pending_lesson)
        payload["obj"]["amount_cents"] = 100

        result = settlement.handle_payment_callback(payload, signature)

        assert result.error_code == "INVALID_SIGNATURE"
        pending_lesson.refresh_from_db()
        assert pending_lesson.payment_status == PaymentStatus.PENDING

    def test_missing_obj_is_invalid_payload(self, settlement):
        result = settlement.handle_payment_callback({"type": "TRANSACTION"}, "abc")

        assert result.error_code == "INVALID_PAYLOAD"

    def test_replay_is_acknowledged_without_changes(self, settlement, notifier, pending_lesson, student):
        payload, signature = transaction_callback(pending_lesson, transaction_id="txn-9")
        settlement.handle_payment_callback(payload, signature)
        pending_lesson.refresh_from_db()
        version = pending_lesson.version

        result = settlement.handle_payment_callback(payload, signature)

        assert result.success
        assert result.data["status"] == "duplicate"
        pending_lesson.refresh_from_db()
        assert pending_lesson.version == version
        assert notifier.types_sent_to(student) == [MessageType.PAYMENT_RECEIVED]
        assert PaymentCallback.objects.count() == 1

    def test_second_success_for_paid_lesson_is_ignored(self, settlement, paid_lesson):
        original_transaction = paid_lesson.transaction_id
        payload, signature = transaction_callback(paid_lesson, transaction_id="another-txn")

        result = settlement.handle_payment_callback(payload, signature)

        assert result.success
        assert result.data["status"] == "ignored"
        paid_lesson.refresh_from_db()
        assert paid_lesson.transaction_id == original_transaction

    def test_late_failure_does_not_unpay_paid_lesson(self, settlement, paid_lesson):
        payload, signature = transaction_callback(paid_lesson, success=False, transaction_id="late")

        settlement.handle_payment_callback(payload, signature)

        paid_lesson.refresh_from_db()
        assert paid_lesson.payment_status == PaymentStatus.PAID

    def test_falls_back_to_gateway_order_id(self, settlement, pending_lesson):
        payload, _ = transaction_callback(pending_lesson)
        payload["obj"]["order"]["merchant_order_id"] = "not-a-uuid"
        signature = compute_callback_hmac(payload["obj"], HMAC_SECRET)

        result = settlement.handle_payment_callback(payload, signature)

        assert result.success
        pending_lesson.refresh_from_db()
        assert pending_lesson.payment_status == PaymentStatus.PAID

    def test_unknown_lesson_is_rejected(self, settlement, pending_lesson):
        payload, _ = transaction_callback(pending_lesson)
        payload["obj"]["order"] = {"id": "no-such-order", "merchant_order_id": ""}
        signature = compute_callback_hmac(payload["obj"], HMAC_SECRET)

        result = settlement.handle_payment_callback(payload, signature)

        assert result.error_code == "LESSON_NOT_FOUND"
        pending_lesson.refresh_from_db()
        assert pending_lesson.payment_status == PaymentStatus.PENDING
        assert PaymentCallback.objects.get().status == CallbackStatus.FAILED

    def test_student_notified_after_locks_are_released(self, settlement, notifier, pending_lesson):
        depth = len(connection.savepoint_ids)
        payload, signature = transaction_callback(pending_lesson)

        settlement.handle_payment_callback(payload, signature)

        assert notifier.savepoint_depths == [depth]

    @pytest.mark.parametrize(
        "lesson_status",
        [LessonStatus.CANCELED, LessonStatus.PENDING],
    )
    def test_success_for_unapproved_lesson_is_not_confirmed(
        self, settlement, notifier, student, teacher, lesson_status
    ):
        lesson = LessonFactory(
            student=student,
            accepted_teacher=teacher if lesson_status == LessonStatus.CANCELED else None,
            status=lesson_status,
            payment_pending=True,
        )
        payload, signature = transaction_callback(lesson, transaction_id="txn-late")

        result = settlement.handle_payment_callback(payload, signature)

        assert result.success
        assert result.data["status"] == "rejected"
        lesson.refresh_from_db()
        assert lesson.status == lesson_status
        assert lesson.payment_status == PaymentStatus.PENDING
        assert lesson.paid_at is None
        assert notifier.calls == []

        callback = PaymentCallback.objects.get(transaction_id="txn-late")
        assert callback.status == CallbackStatus.FAILED
        assert lesson_status in callback.error_message

    def test_success_for_completed_lesson_is_confirmed(self, settlement, student, teacher):
        lesson = LessonFactory(student=student, completed=True, accepted_teacher=teacher, payment_pending=True)
        payload, signature = transaction_callback(lesson)

        result = settlement.handle_payment_callback(payload, signature)

        assert result.data["status"] == "processed"
        lesson.refresh_from_db()
        assert lesson.payment_status == PaymentStatus.PAID


# =============================================================================
# Release
# =============================================================================


class TestReleasePayment:
    def test_pays_out_lesson_price_to_teacher(self, settlement, gateway, notifier, completed_paid_lesson, teacher):
        result = settlement.release_payment_to_teacher(completed_paid_lesson)

        assert result.success
        completed_paid_lesson.refresh_from_db()
        assert completed_paid_lesson.payment_status == PaymentStatus.RELEASED
        assert completed_paid_lesson.payment_record_status == PaymentRecordStatus.RELEASED
        assert completed_paid_lesson.teacher_payout_id == gateway.payouts[0]["id"]
        assert completed_paid_lesson.released_at is not None

        assert gateway.payouts[0]["amount"] == Decimal("100.00")
        assert gateway.payouts[0]["recipient"] == teacher.teacher_profile.payout_recipient_id
        assert gateway.payouts[0]["description"] == f"Payout for lesson {completed_paid_lesson.id}"
        assert notifier.types_sent_to(teacher) == [MessageType.PAYOUT_RELEASED]

    def test_gateway_failure_keeps_lesson_paid(self, settlement, gateway, completed_paid_lesson):
        gateway.fail_payouts_with = PaymentGatewayRejectedError("Insufficient balance", status_code=400)

        result = settlement.release_payment_to_teacher(completed_paid_lesson)

        assert result.error_code == "PAYOUT_FAILED"
        completed_paid_lesson.refresh_from_db()
        assert completed_paid_lesson.payment_status == PaymentStatus.PAID
        assert completed_paid_lesson.teacher_payout_id is None

    def test_retry_after_failure_succeeds(self, settlement, gateway, completed_paid_lesson):
        gateway.fail_payouts_with = PaymentGatewayUnavailableError("down")
        settlement.release_payment_to_teacher(completed_paid_lesson)
        gateway.fail_payouts_with = None

        result = settlement.release_payment_to_teacher(completed_paid_lesson)

        assert result.success
        assert len(gateway.payouts) == 1

    def test_second_release_is_rejected(self, settlement, gateway, completed_paid_lesson):
        settlement.release_payment_to_teacher(completed_paid_lesson)

        result = settlement.release_payment_to_teacher(completed_paid_lesson)

        assert result.error_code == "ALREADY_RELEASED"
        assert len(gateway.payouts) == 1

    def test_stale_copy_cannot_release_twice(self, settlement, gateway, completed_paid_lesson):
        stale = Lesson.objects.get(pk=completed_paid_lesson.pk)
        settlement.release_payment_to_teacher(completed_paid_lesson)

        result = settlement.release_payment_to_teacher(stale)

        assert result.error_code == "CONCURRENT_MODIFICATION"
        assert len(gateway.payouts) == 1

    def test_requires_completed_lesson(self, settlement, gateway, paid_lesson):
        result = settlement.release_payment_to_teacher(paid_lesson)

        assert result.error_code == "INVALID_STATE"
        assert gateway.payouts == []

    def test_requires_payment(self, settlement, gateway, student, teacher):
        lesson = LessonFactory(student=student, completed=True, accepted_teacher=teacher)

        result = settlement.release_payment_to_teacher(lesson)

        assert result.error_code == "PAYMENT_NOT_RECEIVED"
        assert gateway.payouts == []

    def test_requires_payout_account(self, settlement, gateway, student, other_teacher):
        lesson = LessonFactory(student=student, completed=True, accepted_teacher=other_teacher, paid=True)

        result = settlement.release_payment_to_teacher(lesson)

        assert result.error_code == "NO_PAYOUT_ACCOUNT"
        lesson.refresh_from_db()
        assert lesson.payment_status == PaymentStatus.PAID
        assert gateway.payouts == []

    def test_unexpected_error_returns_lesson_to_paid(self, settlement, gateway, completed_paid_lesson):
        gateway.fail_payouts_with = RuntimeError("adapter bug")

        with pytest.raises(RuntimeError):
            settlement.release_payment_to_teacher(completed_paid_lesson)

        completed_paid_lesson.refresh_from_db()
        assert completed_paid_lesson.payment_status == PaymentStatus.PAID

    def test_undecodable_payout_response_keeps_lesson_paid(self, notifier, completed_paid_lesson):
        def handler(request):
            return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip")

        adapter = PaymobAdapter(
            api_key="key",
            integration_id=1,
            iframe_id=1,
            hmac_secret=HMAC_SECRET,
            base_url="https://paymob.test/api",
            transport=httpx.MockTransport(handler),
        )
        settlement = SettlementService(gateway=adapter, notifier=notifier)

        result = settlement.release_payment_to_teacher(completed_paid_lesson)

        assert result.error_code == "PAYOUT_FAILED"
        completed_paid_lesson.refresh_from_db()
        assert completed_paid_lesson.payment_status == PaymentStatus.PAID


class TestRetryRelease:
    def test_teacher_can_release_after_failed_payout(self, settlement, gateway, completed_paid_lesson, teacher):
        gateway.fail_payouts_with = PaymentGatewayUnavailableError("down")
        settlement.release_payment_to_teacher(completed_paid_lesson)
        gateway.fail_payouts_with = None

        result = settlement.retry_release(teacher, completed_paid_lesson)

        assert result.success
        completed_paid_lesson.refresh_from_db()
        assert completed_paid_lesson.payment_status == PaymentStatus.RELEASED
        assert len(gateway.payouts) == 1

    def test_admin_can_release(self, settlement, gateway, completed_paid_lesson, admin_user):
        result = settlement.retry_release(admin_user, completed_paid_lesson)

        assert result.success
        assert len(gateway.payouts) == 1

    @pytest.mark.parametrize("caller", ["student", "other_teacher"])
    def test_other_users_are_rejected(self, request, settlement, gateway, completed_paid_lesson, caller):
        result = settlement.retry_release(request.getfixturevalue(caller), completed_paid_lesson)

        assert result.error_code == "NOT_ACCEPTED_TEACHER"
        assert gateway.payouts == []
