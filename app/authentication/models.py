"""
Authentication models.

This module defines the marketplace's account models:
- User: Email-based user carrying role, notification routing and rewards
- TeacherProfile: Subjects, pricing, verification and payout registration
- StudentProfile: Optional student details

Related files:
    - managers.py: Custom user manager for email-based creation
    - services.py: RegistrationService / ProfileService
    - points/levels.py: Tier thresholds used by User.level

Security:
    - Passwords hashed with Django's configured hasher
    - Device push tokens encrypted at rest (core.crypto)
"""

from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.validators import MinValueValidator
from django.db import models

from authentication.managers import UserManager
from core.crypto import decrypt_value, encrypt_value
from core.models import BaseModel
from points.levels import UserLevel


class UserRole(models.TextChoices):
    STUDENT = "student", "Student"
    TEACHER = "teacher", "Teacher"
    ADMIN = "admin", "Admin"


class Language(models.TextChoices):
    ENGLISH = "en", "English"
    ARABIC = "ar", "Arabic"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        first_name / last_name: Display name used in notifications
        role: student, teacher or admin
        preferred_language: Language for notifications (en/ar)
        push_token: Encrypted FCM device token (use set_push_token)
        points: Reward balance, never negative
        level: Tier derived from points (see points.levels)

    Usage:
        student = User.objects.create_user(
            email="student@example.com",
            password="securepassword",
            role=UserRole.STUDENT,
        )
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    first_name = models.CharField(max_length=50, blank=True, default="")
    last_name = models.CharField(max_length=50, blank=True, default="")

    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.STUDENT,
        db_index=True,
        help_text="Marketplace role",
    )
    preferred_language = models.CharField(
        max_length=2,
        choices=Language.choices,
        default=Language.ENGLISH,
        help_text="Language used for notifications",
    )
    push_token = models.TextField(
        blank=True,
        default="",
        help_text="Encrypted push notification device token",
    )

    points = models.PositiveIntegerField(
        default=0,
        help_text="Reward balance",
    )
    level = models.CharField(
        max_length=20,
        choices=UserLevel.choices,
        default=UserLevel.BRONZE,
        db_index=True,
        help_text="Reward tier derived from points",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.email

    def get_short_name(self):
        return self.first_name or self.email.split("@")[0]

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER

    @property
    def is_platform_admin(self) -> bool:
        return self.role == UserRole.ADMIN or self.is_staff

    def set_push_token(self, raw_token: str) -> None:
        """Encrypt and store a device token. Does not save."""
        self.push_token = encrypt_value(raw_token)

    def get_push_token(self) -> str | None:
        """Return the decrypted device token, or None if unset/unreadable."""
        return decrypt_value(self.push_token)


class VerificationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    VERIFIED = "verified", "Verified"
    REJECTED = "rejected", "Rejected"


class PayoutMethod(models.TextChoices):
    BANK = "bank", "Bank account"
    WALLET = "wallet", "Mobile wallet"


class PayoutRegistrationStatus(models.TextChoices):
    """
    Progress of payout recipient registration with the payment gateway.

    NOT_REGISTERED -> PENDING -> REGISTERED
                              -> FAILED -> PENDING (retry)
    """

    NOT_REGISTERED = "not_registered", "Not registered"
    PENDING = "pending", "Pending"
    REGISTERED = "registered", "Registered"
    FAILED = "failed", "Failed"


class TeacherProfile(BaseModel):
    """
    Teaching details and payout registration for a teacher.

    Fields:
        user: OneToOne link to User (also serves as primary key)
        subjects: Subjects taught (list of strings)
        hourly_price: Declared hourly rate, used for open request matching
        verification_status: Admin verification of the teacher
        average_rating / total_reviews: Maintained by the reviews app
        payout_*: Account details sent to the gateway on registration
        payout_recipient_id: Gateway recipient id, set once registered

    Note:
        payout_recipient_id is only trusted when payout_registration_status
        is REGISTERED; a FAILED registration keeps the submitted account
        details so the teacher can retry.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="teacher_profile",
    )
    subjects = models.JSONField(
        default=list,
        blank=True,
        help_text="Subjects taught, e.g. ['Math', 'Physics']",
    )
    hourly_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
        help_text="Hourly rate in major currency units",
    )
    bio = models.TextField(blank=True, default="")
    experience_years = models.PositiveSmallIntegerField(default=0)
    verification_status = models.CharField(
        max_length=20,
        choices=VerificationStatus.choices,
        default=VerificationStatus.PENDING,
    )

    average_rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=Decimal("0"),
    )
    total_reviews = models.PositiveIntegerField(default=0)

    # ==========================================================================
    # Payout account
    # ==========================================================================

    payout_method = models.CharField(
        max_length=10,
        choices=PayoutMethod.choices,
        blank=True,
        default="",
    )
    account_name = models.CharField(max_length=100, blank=True, default="")
    account_number = models.CharField(max_length=64, blank=True, default="")
    bank_name = models.CharField(max_length=100, blank=True, default="")
    wallet_provider = models.CharField(max_length=50, blank=True, default="")
    payout_phone_number = models.CharField(max_length=20, blank=True, default="")

    payout_recipient_id = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Payment gateway payout recipient id",
    )
    payout_registration_status = models.CharField(
        max_length=20,
        choices=PayoutRegistrationStatus.choices,
        default=PayoutRegistrationStatus.NOT_REGISTERED,
    )
    payout_registration_error = models.TextField(blank=True, default="")

    class Meta:
        verbose_name = "teacher profile"
        verbose_name_plural = "teacher profiles"

    def __str__(self) -> str:
        return f"TeacherProfile({self.user_id})"

    @property
    def has_payout_recipient(self) -> bool:
        return (
            bool(self.payout_recipient_id)
            and self.payout_registration_status == PayoutRegistrationStatus.REGISTERED
        )

    def teaches(self, subject: str) -> bool:
        """Case-insensitive check against the taught subjects."""
        wanted = subject.strip().lower()
        return any(str(s).strip().lower() == wanted for s in self.subjects or [])

    def lesson_price_for(self, duration_minutes: int) -> Decimal:
        """Price this teacher's hourly rate implies for a lesson length."""
        return self.hourly_price * Decimal(duration_minutes) / Decimal(60)


class StudentProfile(BaseModel):
    """Optional student details."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="student_profile",
    )
    grade_level = models.CharField(max_length=50, blank=True, default="")
    bio = models.TextField(blank=True, default="")

    def __str__(self) -> str:
        return f"StudentProfile({self.user_id})"
