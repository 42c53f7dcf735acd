"""
Authentication services.

This module provides account registration and profile maintenance for the
marketplace roles.

Services:
    RegistrationService: Create a user together with its role profile
    ProfileService: Update the current user's profile and push token

Related files:
    - models.py: User, TeacherProfile, StudentProfile
    - serializers.py: Input validation for the views

Security:
    - Only student and teacher roles can self-register
    - Push tokens are stored encrypted
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import IntegrityError

from core.services import BaseService, ServiceResult

from authentication.models import StudentProfile, TeacherProfile, User, UserRole

if TYPE_CHECKING:
    from typing import Any


SELF_REGISTRATION_ROLES = (UserRole.STUDENT, UserRole.TEACHER)

TEACHER_PROFILE_FIELDS = ("subjects", "hourly_price", "bio", "experience_years")
USER_PROFILE_FIELDS = ("first_name", "last_name", "preferred_language")


class RegistrationService(BaseService):
    """
    Create marketplace accounts.

    Usage:
        result = RegistrationService.register(
            email="teacher@example.com",
            password="s3cret-pass",
            role="teacher",
            teacher_profile={"subjects": ["Math"], "hourly_price": 90},
        )
    """

    @classmethod
    def register(
        cls,
        email: str,
        password: str,
        role: str = UserRole.STUDENT,
        first_name: str = "",
        last_name: str = "",
        preferred_language: str = "en",
        teacher_profile: dict[str, Any] | None = None,
        student_profile: dict[str, Any] | None = None,
    ) -> ServiceResult[User]:
        """
        Register a student or teacher and create the matching profile.

        Returns:
            ServiceResult with the new user, or failure with
            ROLE_NOT_ALLOWED / EMAIL_EXISTS
        """
        if role not in SELF_REGISTRATION_ROLES:
            return ServiceResult.failure(
                f"Cannot self-register with role '{role}'",
                error_code="ROLE_NOT_ALLOWED",
            )

        if User.objects.filter(email__iexact=email).exists():
            return ServiceResult.failure("Email already registered", error_code="EMAIL_EXISTS")

        try:
            with cls.atomic():
                user = User.objects.create_user(
                    email=email,
                    password=password,
                    role=role,
                    first_name=first_name,
                    last_name=last_name,
                    preferred_language=preferred_language,
                )
                if role == UserRole.TEACHER:
                    TeacherProfile.objects.create(user=user, **(teacher_profile or {}))
                else:
                    StudentProfile.objects.create(user=user, **(student_profile or {}))
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            return ServiceResult.failure("Email already registered", error_code="EMAIL_EXISTS")

        cls.get_logger().info(
            f"Registered {role} {user.email}",
            extra={"user_id": user.id, "role": role},
        )
        return ServiceResult.success(user)


class ProfileService(BaseService):
    """Self-service profile updates."""

    @classmethod
    def update_profile(cls, user: User, data: dict[str, Any]) -> ServiceResult[User]:
        """
        Update user fields and, for teachers, the teacher profile.

        Unknown keys are ignored; the serializer decides what is accepted.
        """
        user_changes = {k: data[k] for k in USER_PROFILE_FIELDS if k in data}
        teacher_changes = {k: data[k] for k in TEACHER_PROFILE_FIELDS if k in data}

        if teacher_changes and not user.is_teacher:
            return ServiceResult.failure(
                "Only teachers have teaching details",
                error_code="ROLE_NOT_ALLOWED",
            )

        with cls.atomic():
            for name, value in user_changes.items():
                setattr(user, name, value)
            if user_changes:
                user.save(update_fields=[*user_changes, "updated_at"])

            if teacher_changes:
                profile, _ = TeacherProfile.objects.get_or_create(user=user)
                for name, value in teacher_changes.items():
                    setattr(profile, name, value)
                profile.save(update_fields=[*teacher_changes, "updated_at"])

        return ServiceResult.success(user)

    @classmethod
    def set_push_token(cls, user: User, token: str) -> ServiceResult[User]:
        """Store (or clear, with an empty token) the device push token."""
        user.set_push_token(token)
        user.save(update_fields=["push_token", "updated_at"])
        cls.get_logger().info(
            f"Push token {'updated' if token else 'cleared'} for user {user.id}",
            extra={"user_id": user.id},
        )
        return ServiceResult.success(user)
