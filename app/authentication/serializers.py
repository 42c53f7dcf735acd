"""
Serializers for authentication models.

This module provides DRF serializers for:
- Registration (create user with role profile)
- Current user read/update
- Push token registration
- Compact user summaries embedded in lesson payloads

Security:
    - Password fields are write-only
    - push_token is never serialized back to clients
"""

from decimal import Decimal

from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from authentication.models import Language, TeacherProfile, User, UserRole


class UserSummarySerializer(serializers.ModelSerializer):
    """Minimal public view of a user (names only, no contact data)."""

    full_name = serializers.CharField(source="get_full_name", read_only=True)

    class Meta:
        model = User
        fields = ["id", "first_name", "last_name", "full_name", "role"]
        read_only_fields = fields


class TeacherProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = TeacherProfile
        fields = [
            "subjects",
            "hourly_price",
            "bio",
            "experience_years",
            "verification_status",
            "average_rating",
            "total_reviews",
        ]
        read_only_fields = ["verification_status", "average_rating", "total_reviews"]


class PublicTeacherSerializer(serializers.ModelSerializer):
    """Teacher card shown to students (interested teachers list)."""

    full_name = serializers.CharField(source="get_full_name", read_only=True)
    teacher_profile = TeacherProfileSerializer(read_only=True)

    class Meta:
        model = User
        fields = ["id", "first_name", "last_name", "full_name", "teacher_profile"]
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    """Full view of the current user."""

    full_name = serializers.CharField(source="get_full_name", read_only=True)
    teacher_profile = serializers.SerializerMethodField()
    has_push_token = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "role",
            "preferred_language",
            "points",
            "level",
            "has_push_token",
            "teacher_profile",
            "date_joined",
        ]
        read_only_fields = fields

    def get_teacher_profile(self, obj):
        if not obj.is_teacher:
            return None
        profile = TeacherProfile.objects.filter(user=obj).first()
        return TeacherProfileSerializer(profile).data if profile else None

    def get_has_push_token(self, obj):
        return bool(obj.push_token)


class TeacherRegistrationProfileSerializer(serializers.Serializer):
    subjects = serializers.ListField(
        child=serializers.CharField(max_length=100),
        allow_empty=False,
    )
    hourly_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0")
    )
    bio = serializers.CharField(required=False, allow_blank=True, default="")
    experience_years = serializers.IntegerField(required=False, min_value=0, default=0)


class RegisterSerializer(serializers.Serializer):
    """
    Registration input.

    Teachers must provide teacher_profile with subjects and hourly_price.
    """

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    role = serializers.ChoiceField(
        choices=[UserRole.STUDENT, UserRole.TEACHER],
        default=UserRole.STUDENT,
    )
    first_name = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    last_name = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    preferred_language = serializers.ChoiceField(
        choices=Language.choices,
        default=Language.ENGLISH,
    )
    teacher_profile = TeacherRegistrationProfileSerializer(required=False)

    def validate_password(self, value):
        validate_password(value)
        return value

    def validate(self, attrs):
        if attrs.get("role") == UserRole.TEACHER and not attrs.get("teacher_profile"):
            raise serializers.ValidationError(
                {"teacher_profile": ["Teachers must provide subjects and hourly_price."]}
            )
        return attrs


class UserUpdateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=50, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=50, required=False, allow_blank=True)
    preferred_language = serializers.ChoiceField(choices=Language.choices, required=False)
    subjects = serializers.ListField(
        child=serializers.CharField(max_length=100),
        required=False,
    )
    hourly_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0"), required=False
    )
    bio = serializers.CharField(required=False, allow_blank=True)
    experience_years = serializers.IntegerField(required=False, min_value=0)


class PushTokenSerializer(serializers.Serializer):
    push_token = serializers.CharField(max_length=4096, allow_blank=True)
