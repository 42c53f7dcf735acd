"""
Payment models.

Lesson payment state lives on lessons.Lesson itself; this module holds the
audit and idempotency record for gateway callbacks.

Models:
    PaymentCallback: One row per Paymob transaction callback

Usage:
    callback, created = PaymentCallback.objects.get_or_create(
        transaction_id=str(obj["id"]),
        defaults={"payload": payload, "success": obj["success"] is True},
    )
    if not created and callback.is_processed:
        return  # replay
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin


class CallbackStatus(models.TextChoices):
    """
    Processing status of a gateway callback.

    State Flow:
        PENDING -> PROCESSING -> PROCESSED
        PENDING -> PROCESSING -> FAILED (lesson not found, conflict)
        REJECTED (HMAC mismatch; never stored against a transaction id)
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"
    REJECTED = "rejected", "Rejected"


class PaymentCallback(UUIDPrimaryKeyMixin, BaseModel):
    """
    Tracks Paymob transaction callbacks for idempotent processing.

    Fields:
        transaction_id: Paymob transaction id (obj.id), unique
        gateway_order_id: Paymob order id (obj.order.id)
        lesson: Lesson the callback settled, once located
        success: Whether the gateway reported the transaction successful
        payload: Verified callback body
        status: Processing status
        error_message: Why processing failed
        processed_at: When processing finished
    """

    transaction_id = models.CharField(
        max_length=64,
        unique=True,
        help_text="Paymob transaction id - unique constraint for idempotency",
    )
    gateway_order_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    lesson = models.ForeignKey(
        "lessons.Lesson",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payment_callbacks",
    )
    success = models.BooleanField(default=False)
    payload = models.JSONField(default=dict)
    status = models.CharField(
        max_length=20,
        choices=CallbackStatus.choices,
        default=CallbackStatus.PENDING,
        db_index=True,
    )
    error_message = models.TextField(blank=True, default="")
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Callback"
        verbose_name_plural = "Payment Callbacks"

    def __str__(self) -> str:
        return f"PaymentCallback({self.transaction_id}, {self.status})"

    @property
    def is_processed(self) -> bool:
        return self.status == CallbackStatus.PROCESSED

    def mark_processing(self) -> None:
        """Does not save."""
        self.status = CallbackStatus.PROCESSING

    def mark_processed(self, lesson=None) -> None:
        """Does not save."""
        self.status = CallbackStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = ""
        if lesson is not None:
            self.lesson = lesson

    def mark_failed(self, error: str) -> None:
        """Does not save."""
        self.status = CallbackStatus.FAILED
        self.error_message = error
