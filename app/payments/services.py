"""
Payment settlement services.

Services:
    SettlementService: Collect lesson payments and release them to teachers
    PayoutAccountService: Teacher payout details and recipient registration

Settlement flow (Lesson.payment_status):
    unpaid --initiate (approved lesson)--> pending --callback success--> paid
    pending --callback failure--> unpaid
    paid --claim--> held --payout ok--> released
                    held --payout failed--> paid

Design Principles:
    - Expected failures return ServiceResult.failure()
    - Gateway calls never run inside a database transaction
    - Callbacks are idempotent per gateway transaction id (PaymentCallback)
    - Notifications go out after the row locks are released
    - A release is claimed with a conditional UPDATE (paid -> held) before
      the payout call, so two concurrent releases cannot both pay out

Usage:
    from payments.dependencies import get_settlement_service

    settlement = get_settlement_service()
    result = settlement.initiate_payment(request.user, lesson)
    if result.success:
        return Response(result.data)   # {"payment_url": ..., "gateway_order_id": ...}
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from django.db.models import QuerySet
from django_fsm import ConcurrentTransition, TransitionNotAllowed

from core.services import BaseService, ServiceResult

from authentication.models import PayoutMethod, PayoutRegistrationStatus, TeacherProfile
from lessons.models import Lesson
from lessons.states import (
    PAYABLE_LESSON_STATUSES,
    SETTLED_PAYMENT_STATUSES,
    LessonStatus,
    PaymentStatus,
)
from notifications.messages import MessageType
from payments.adapters.paymob import BillingCustomer, PayoutRecipient
from payments.exceptions import PaymentGatewayError, SignatureVerificationError
from payments.models import PaymentCallback

if TYPE_CHECKING:
    from authentication.models import User
    from notifications.services import NotificationDispatcher
    from payments.adapters.paymob import PaymobAdapter


logger = logging.getLogger(__name__)


def _is_true(value: Any) -> bool:
    return value is True or (isinstance(value, str) and value.lower() == "true")


def _concurrent_failure() -> ServiceResult:
    return ServiceResult.failure(
        "The lesson was modified by another request; reload and retry",
        error_code="CONCURRENT_MODIFICATION",
    )


class SettlementService(BaseService):
    """
    Payment collection and teacher payouts for lessons.

    The gateway and notifier are injected; see payments.dependencies.
    """

    def __init__(self, gateway: PaymobAdapter, notifier: NotificationDispatcher):
        self.gateway = gateway
        self.notifier = notifier

    # =========================================================================
    # Initiate
    # =========================================================================

    def initiate_payment(self, student: User, lesson: Lesson) -> ServiceResult[dict]:
        """
        Create a hosted-checkout payment for the lesson price.

        Payment is collected once a teacher is chosen, so the price is
        final and a successful payment always belongs to an approved lesson.

        Error codes:
            NOT_LESSON_OWNER: Caller is not the lesson's student
            ALREADY_PAID: Payment already collected or released
            INVALID_STATE: Lesson is canceled, or no teacher is chosen yet
            PAYMENT_GATEWAY_ERROR: Gateway failed; nothing was changed
        """
        if lesson.student_id != student.id:
            return ServiceResult.failure(
                "You are not allowed to pay for this lesson",
                error_code="NOT_LESSON_OWNER",
            )
        if lesson.payment_status in SETTLED_PAYMENT_STATUSES:
            return ServiceResult.failure("Lesson is already paid", error_code="ALREADY_PAID")
        if lesson.status == LessonStatus.CANCELED:
            return ServiceResult.failure(
                "Cannot pay for a canceled lesson",
                error_code="INVALID_STATE",
            )
        if lesson.status != LessonStatus.APPROVED:
            return ServiceResult.failure(
                "Choose a teacher before paying for the lesson",
                error_code="INVALID_STATE",
            )

        customer = BillingCustomer(
            email=student.email,
            first_name=student.first_name,
            last_name=student.last_name,
        )
        try:
            intent = self.gateway.create_payment(
                amount=lesson.price,
                merchant_order_id=str(lesson.id),
                customer=customer,
            )
        except PaymentGatewayError as e:
            return self.handle_exception(e, f"Payment initiation for lesson {lesson.id}")

        try:
            lesson.start_payment(gateway_order_id=intent.gateway_order_id, amount=lesson.price)
            lesson.save()
        except (TransitionNotAllowed, ConcurrentTransition):
            return _concurrent_failure()

        self.get_logger().info(
            f"Payment initiated for lesson {lesson.id}",
            extra={"lesson_id": str(lesson.id), "gateway_order_id": intent.gateway_order_id},
        )
        return ServiceResult.success(
            {
                "payment_url": intent.payment_url,
                "gateway_order_id": intent.gateway_order_id,
                "amount": str(lesson.price),
                "currency": self.gateway.currency,
            }
        )

    # =========================================================================
    # Callback
    # =========================================================================

    def handle_payment_callback(
        self,
        payload: dict[str, Any],
        received_hmac: str | None,
    ) -> ServiceResult[dict]:
        """
        Apply a verified Paymob transaction callback.

        Nothing is written before the HMAC is verified. Replays of a
        processed transaction, or callbacks for an already paid lesson,
        are acknowledged without changes. A success for a lesson that is
        canceled or has no chosen teacher is recorded as a failed callback
        and left for manual refund.

        The student is notified after the callback and lesson row locks
        are released.

        Error codes:
            INVALID_PAYLOAD: Body has no transaction object or id
            INVALID_SIGNATURE: HMAC mismatch
            LESSON_NOT_FOUND: No lesson matches the order
        """
        obj = payload.get("obj") if isinstance(payload, dict) else None
        if not isinstance(obj, dict):
            return ServiceResult.failure("Missing transaction object", error_code="INVALID_PAYLOAD")

        try:
            self.gateway.verify_callback(obj, received_hmac)
        except SignatureVerificationError as e:
            logger.warning(
                "Payment callback signature verification failed",
                extra={"transaction_id": obj.get("id")},
            )
            return ServiceResult.from_exception(e)

        transaction_id = obj.get("id")
        if transaction_id in (None, ""):
            return ServiceResult.failure("Missing transaction id", error_code="INVALID_PAYLOAD")

        order = obj.get("order") if isinstance(obj.get("order"), dict) else {}
        success = _is_true(obj.get("success"))
        log_context = {
            "transaction_id": str(transaction_id),
            "gateway_order_id": str(order.get("id", "")),
            "success": success,
        }

        outcome = None
        with self.atomic():
            callback, created = PaymentCallback.objects.select_for_update().get_or_create(
                transaction_id=str(transaction_id),
                defaults={
                    "gateway_order_id": str(order.get("id", "")),
                    "success": success,
                    "payload": payload,
                },
            )
            if not created and callback.is_processed:
                logger.info("Payment callback already processed", extra=log_context)
                return ServiceResult.success({"status": "duplicate"})

            callback.mark_processing()
            lesson = self._locate_lesson(order)
            if lesson is None:
                callback.mark_failed("Lesson not found")
                callback.save()
                logger.warning("Payment callback for unknown lesson", extra=log_context)
                return ServiceResult.failure("Lesson not found", error_code="LESSON_NOT_FOUND")

            log_context["lesson_id"] = str(lesson.id)
            if success and lesson.status not in PAYABLE_LESSON_STATUSES:
                callback.mark_failed(f"Payment received for a {lesson.status} lesson")
                callback.save()
                logger.error(
                    f"Payment collected for {lesson.status} lesson {lesson.id}; refund manually",
                    extra={**log_context, "lesson_status": lesson.status},
                )
                return ServiceResult.success(
                    {
                        "status": "rejected",
                        "lesson_id": str(lesson.id),
                        "payment_status": lesson.payment_status,
                    }
                )

            if success:
                outcome = self._apply_success(lesson, transaction_id, obj)
            else:
                outcome = self._apply_failure(lesson, transaction_id)

            callback.mark_processed(lesson)
            callback.save()

        if outcome is not None:
            message_type, context = outcome
            self.notifier.notify(
                lesson.student,
                message_type,
                context=context,
                data={"lesson_id": str(lesson.id)},
            )

        logger.info(
            f"Payment callback {'applied' if outcome else 'acknowledged'}",
            extra={**log_context, "payment_status": lesson.payment_status},
        )
        return ServiceResult.success(
            {
                "status": "processed" if outcome else "ignored",
                "lesson_id": str(lesson.id),
                "payment_status": lesson.payment_status,
            }
        )

    def _locate_lesson(self, order: dict[str, Any]) -> Lesson | None:
        queryset = Lesson.objects.select_for_update().select_related("student")

        merchant_order_id = order.get("merchant_order_id")
        if merchant_order_id:
            try:
                lesson_id = uuid.UUID(str(merchant_order_id))
            except ValueError:
                lesson_id = None
            if lesson_id is not None:
                lesson = queryset.filter(id=lesson_id).first()
                if lesson is not None:
                    return lesson

        gateway_order_id = order.get("id")
        if gateway_order_id not in (None, ""):
            return queryset.filter(gateway_order_id=str(gateway_order_id)).first()
        return None

    def _apply_success(
        self, lesson: Lesson, transaction_id: Any, obj: dict[str, Any]
    ) -> tuple[str, dict] | None:
        """Mark the lesson paid; returns the student notification to send."""
        if lesson.payment_status in SETTLED_PAYMENT_STATUSES:
            return None

        try:
            amount_paid = Decimal(str(obj.get("amount_cents", 0))) / 100
        except InvalidOperation:
            amount_paid = lesson.payment_amount or lesson.price

        lesson.confirm_payment(transaction_id=transaction_id, amount_paid=amount_paid)
        lesson.save()
        return MessageType.PAYMENT_RECEIVED, {"amount": str(amount_paid), "subject": lesson.subject}

    def _apply_failure(self, lesson: Lesson, transaction_id: Any) -> tuple[str, dict] | None:
        if lesson.payment_status != PaymentStatus.PENDING:
            return None

        lesson.fail_payment(transaction_id=transaction_id)
        lesson.save()
        return MessageType.PAYMENT_FAILED, {"subject": lesson.subject}

    # =========================================================================
    # Release
    # =========================================================================

    def retry_release(self, user: User, lesson: Lesson) -> ServiceResult[Lesson]:
        """
        Release a completed, paid lesson on request.

        Used after a failed payout or when the teacher registered a payout
        account only after completing the lesson. Open to the accepted
        teacher and platform admins.
        """
        if not (user.is_platform_admin or lesson.accepted_teacher_id == user.id):
            return ServiceResult.failure(
                "Only the lesson's teacher can request the payout",
                error_code="NOT_ACCEPTED_TEACHER",
            )
        return self.release_payment_to_teacher(lesson)

    def release_payment_to_teacher(self, lesson: Lesson) -> ServiceResult[Lesson]:
        """
        Pay the accepted teacher for a completed, paid lesson.

        The release is claimed (paid -> held) before the payout call. Any
        failure of the call returns the lesson to paid, so a retry is safe.

        Error codes:
            INVALID_STATE: Lesson is not completed
            ALREADY_RELEASED / PAYMENT_NOT_RECEIVED: Payment state mismatch
            NO_PAYOUT_ACCOUNT: Teacher has no registered payout recipient
            CONCURRENT_MODIFICATION: Another request claimed the release
            PAYOUT_FAILED: Gateway failed; the lesson stays paid
        """
        if lesson.status != LessonStatus.COMPLETED:
            return ServiceResult.failure(
                "Lesson must be completed before payout",
                error_code="INVALID_STATE",
            )
        if lesson.payment_status == PaymentStatus.RELEASED:
            return ServiceResult.failure("Payment already released", error_code="ALREADY_RELEASED")
        if lesson.payment_status != PaymentStatus.PAID:
            return ServiceResult.failure("Payment not received yet", error_code="PAYMENT_NOT_RECEIVED")

        profile = TeacherProfile.objects.filter(user_id=lesson.accepted_teacher_id).first()
        if profile is None or not profile.has_payout_recipient:
            return ServiceResult.failure(
                "Teacher has no payout account",
                error_code="NO_PAYOUT_ACCOUNT",
            )

        try:
            lesson.claim_release()
            lesson.save()
        except (TransitionNotAllowed, ConcurrentTransition):
            lesson.refresh_from_db()
            return _concurrent_failure()

        log_context = {"lesson_id": str(lesson.id), "teacher_id": lesson.accepted_teacher_id}
        try:
            payout = self.gateway.create_payout(
                amount=lesson.price,
                recipient_id=profile.payout_recipient_id,
                description=f"Payout for lesson {lesson.id}",
            )
        except PaymentGatewayError as e:
            self._abort_release(lesson)
            logger.error(f"Payout failed for lesson {lesson.id}: {e}", extra=log_context)
            return ServiceResult.failure(
                "Failed to release payment to teacher",
                error_code="PAYOUT_FAILED",
            )
        except Exception:
            self._abort_release(lesson)
            logger.exception(f"Unexpected payout error for lesson {lesson.id}", extra=log_context)
            raise

        lesson.release_payment(payout_id=payout.id)
        lesson.save()

        logger.info(
            f"Payment released for lesson {lesson.id}",
            extra={**log_context, "payout_id": payout.id},
        )
        self.notifier.notify(
            profile.user,
            MessageType.PAYOUT_RELEASED,
            context={"amount": str(lesson.price), "subject": lesson.subject},
            data={"lesson_id": str(lesson.id)},
        )
        return ServiceResult.success(lesson)

    @staticmethod
    def _abort_release(lesson: Lesson) -> None:
        lesson.abort_release()
        lesson.save()


class PayoutAccountService(BaseService):
    """
    Teacher payout details.

    Registration is two-phase: details are saved with status PENDING,
    the provider is called, then the recipient id is saved as REGISTERED.
    On provider failure the profile is left FAILED with the error and the
    teacher can retry.
    """

    DESTINATION_FIELDS = (
        "payout_method",
        "account_name",
        "account_number",
        "bank_name",
        "wallet_provider",
        "payout_phone_number",
    )

    def __init__(self, gateway: PaymobAdapter):
        self.gateway = gateway

    def update_payment_info(self, teacher: User, data: dict[str, Any]) -> ServiceResult[TeacherProfile]:
        if not teacher.is_teacher:
            return ServiceResult.failure(
                "Only teachers have payout accounts",
                error_code="ROLE_NOT_ALLOWED",
            )

        profile, _ = TeacherProfile.objects.get_or_create(user=teacher)
        changes = {
            name: data[name]
            for name in self.DESTINATION_FIELDS
            if name in data and data[name] != getattr(profile, name)
        }
        if not changes and profile.has_payout_recipient:
            return ServiceResult.success(profile)

        for name, value in changes.items():
            setattr(profile, name, value)

        method = profile.payout_method
        if method not in PayoutMethod.values:
            return ServiceResult.failure(
                "Payout method must be bank or wallet",
                error_code="VALIDATION_ERROR",
                errors={"payout_method": ["Must be bank or wallet."]},
            )
        if method == PayoutMethod.BANK and not (profile.account_number and profile.bank_name):
            return ServiceResult.failure(
                "Bank payouts need account_number and bank_name",
                error_code="VALIDATION_ERROR",
                errors={"account_number": ["Required for bank payouts."]},
            )
        if method == PayoutMethod.WALLET and not profile.payout_phone_number:
            return ServiceResult.failure(
                "Wallet payouts need payout_phone_number",
                error_code="VALIDATION_ERROR",
                errors={"payout_phone_number": ["Required for wallet payouts."]},
            )

        # Phase 1: persist details
        profile.payout_registration_status = PayoutRegistrationStatus.PENDING
        profile.payout_registration_error = ""
        profile.save()

        # Phase 2: register with the provider
        recipient = PayoutRecipient(
            name=profile.account_name or teacher.get_full_name(),
            email=teacher.email,
            method=method,
            phone=profile.payout_phone_number,
            account_number=profile.account_number or profile.payout_phone_number,
            bank_name=profile.bank_name or profile.wallet_provider,
        )
        try:
            recipient_id = self.gateway.register_payout_recipient(recipient)
        except PaymentGatewayError as e:
            profile.payout_registration_status = PayoutRegistrationStatus.FAILED
            profile.payout_registration_error = e.message[:500]
            profile.save(update_fields=["payout_registration_status", "payout_registration_error", "updated_at"])
            self.get_logger().error(
                f"Payout recipient registration failed for teacher {teacher.id}: {e}",
                extra={"teacher_id": teacher.id},
            )
            return ServiceResult.failure(
                "Failed to register payout account",
                error_code="PAYOUT_REGISTRATION_FAILED",
            )

        # Phase 3: store the recipient
        profile.payout_recipient_id = recipient_id
        profile.payout_registration_status = PayoutRegistrationStatus.REGISTERED
        profile.save(update_fields=["payout_recipient_id", "payout_registration_status", "updated_at"])

        self.get_logger().info(
            f"Payout recipient registered for teacher {teacher.id}",
            extra={"teacher_id": teacher.id, "method": method},
        )
        return ServiceResult.success(profile)

    @staticmethod
    def payout_history(teacher: User) -> QuerySet[Lesson]:
        """Lessons the teacher taught that have been paid or paid out."""
        return (
            Lesson.objects.filter(
                accepted_teacher=teacher,
                payment_status__in=[PaymentStatus.PAID, PaymentStatus.RELEASED],
            )
            .select_related("student")
            .order_by("-updated_at")
        )
