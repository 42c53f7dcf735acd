"""
DRF serializers for payments app.

This module provides serializers for:
- Payment initiation responses
- Teacher payout account details (masked on read)
- Payout history

Related files:
    - services.py: SettlementService, PayoutAccountService
    - views.py: Payment API views
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.models import PayoutMethod, TeacherProfile
from lessons.models import Lesson


class InitiatePaymentResponseSerializer(serializers.Serializer):
    payment_url = serializers.URLField()
    gateway_order_id = serializers.CharField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    currency = serializers.CharField()


class CallbackResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    status = serializers.CharField()


def mask_account_number(value: str) -> str:
    """Keep the last four characters visible."""
    if not value:
        return ""
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


class PaymentInfoSerializer(serializers.ModelSerializer):
    """
    Stored payout details for the authenticated teacher.

    The account number is masked; the gateway recipient id is reported
    only as a registered flag.
    """

    account_number = serializers.SerializerMethodField()
    is_registered = serializers.BooleanField(source="has_payout_recipient", read_only=True)

    class Meta:
        model = TeacherProfile
        fields = [
            "payout_method",
            "account_name",
            "account_number",
            "bank_name",
            "wallet_provider",
            "payout_phone_number",
            "payout_registration_status",
            "payout_registration_error",
            "is_registered",
        ]
        read_only_fields = fields

    def get_account_number(self, obj) -> str:
        return mask_account_number(obj.account_number)


class PaymentInfoUpdateSerializer(serializers.Serializer):
    """
    Payout details submitted by a teacher.

    Omitted fields keep their stored values.
    """

    payout_method = serializers.ChoiceField(choices=PayoutMethod.choices)
    account_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    account_number = serializers.CharField(max_length=64, required=False, allow_blank=True)
    bank_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    wallet_provider = serializers.CharField(max_length=50, required=False, allow_blank=True)
    payout_phone_number = serializers.CharField(max_length=20, required=False, allow_blank=True)


class PayoutHistorySerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source="student.get_full_name", read_only=True)

    class Meta:
        model = Lesson
        fields = [
            "id",
            "subject",
            "price",
            "payment_status",
            "teacher_payout_id",
            "student_name",
            "paid_at",
            "released_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
