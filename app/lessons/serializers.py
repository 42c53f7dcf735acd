"""
Serializers for the lessons API.

Join tokens are never serialized as fields: `join_token` resolves to the
requesting user's own token and is empty for everyone else.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from core.serializer_mixins import FieldSelectionMixin, TimestampMixin

from authentication.serializers import PublicTeacherSerializer, UserSummarySerializer
from lessons.models import Lesson, LessonOffer
from lessons.services import RESPONSE_ACCEPT, RESPONSE_REJECT

MIN_PRICE = Decimal("0.01")


class LessonSerializer(FieldSelectionMixin, TimestampMixin, serializers.ModelSerializer):
    student = UserSummarySerializer(read_only=True)
    accepted_teacher = UserSummarySerializer(read_only=True)
    join_token = serializers.SerializerMethodField()

    class Meta:
        model = Lesson
        fields = [
            "id",
            "student",
            "subject",
            "title",
            "description",
            "price",
            "requested_date",
            "duration_minutes",
            "request_type",
            "target_teacher",
            "accepted_teacher",
            "status",
            "meeting_room_id",
            "meeting_status",
            "meeting_started_at",
            "meeting_ended_at",
            "join_token",
            "payment_status",
            "payment_amount",
            "gateway_order_id",
            "transaction_id",
            "payment_record_status",
            "amount_paid",
            "teacher_payout_id",
            "paid_at",
            "released_at",
            "approved_at",
            "completed_at",
            "canceled_at",
            "version",
        ]
        read_only_fields = fields

    def get_join_token(self, obj) -> str:
        request = self.context.get("request")
        if request is None or not request.user.is_authenticated:
            return ""
        return obj.join_token_for(request.user)


class LessonCreateSerializer(serializers.Serializer):
    subject = serializers.CharField(max_length=100)
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=MIN_PRICE)
    requested_date = serializers.DateTimeField()
    duration_minutes = serializers.IntegerField(min_value=1, max_value=24 * 60)
    target_teacher_id = serializers.IntegerField(required=False, allow_null=True)


class RespondSerializer(serializers.Serializer):
    response = serializers.ChoiceField(choices=[RESPONSE_ACCEPT, RESPONSE_REJECT])


class RespondResultSerializer(serializers.Serializer):
    status = serializers.CharField()
    lesson_id = serializers.UUIDField()


class CounterOfferSerializer(serializers.Serializer):
    proposed_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=MIN_PRICE)
    message = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class UpdatePriceSerializer(serializers.Serializer):
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=MIN_PRICE)


class ChooseTeacherSerializer(serializers.Serializer):
    final_price = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=MIN_PRICE,
        required=False,
        allow_null=True,
    )


class LessonOfferSerializer(TimestampMixin, serializers.ModelSerializer):
    teacher = UserSummarySerializer(read_only=True)

    class Meta:
        model = LessonOffer
        fields = ["id", "teacher", "proposed_price", "message"]
        read_only_fields = fields


class InterestedTeacherSerializer(PublicTeacherSerializer):
    """Interested teacher with their offer for this lesson, if any."""

    offer = serializers.SerializerMethodField()

    class Meta(PublicTeacherSerializer.Meta):
        fields = [*PublicTeacherSerializer.Meta.fields, "offer"]
        read_only_fields = fields

    def get_offer(self, obj) -> dict | None:
        offers = self.context.get("offers_by_teacher", {})
        offer = offers.get(obj.pk)
        if offer is None:
            return None
        return {"proposed_price": str(offer.proposed_price), "message": offer.message}
