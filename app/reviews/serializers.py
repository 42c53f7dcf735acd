from rest_framework import serializers

from core.serializer_mixins import TimestampMixin

from authentication.serializers import UserSummarySerializer
from reviews.models import MAX_COMMENT_LENGTH, MAX_RATING, MIN_RATING, Review


class ReviewSerializer(TimestampMixin, serializers.ModelSerializer):
    student = UserSummarySerializer(read_only=True)
    teacher = UserSummarySerializer(read_only=True)
    subject = serializers.CharField(source="lesson.subject", read_only=True)

    class Meta:
        model = Review
        fields = ["id", "lesson", "subject", "student", "teacher", "rating", "comment"]
        read_only_fields = fields


class ReviewCreateSerializer(serializers.Serializer):
    lesson_id = serializers.UUIDField()
    rating = serializers.IntegerField(min_value=MIN_RATING, max_value=MAX_RATING)
    comment = serializers.CharField(
        max_length=MAX_COMMENT_LENGTH,
        required=False,
        allow_blank=True,
        default="",
    )
