"""
Initial schema for marketplace accounts.

Changes:
    - Create User (email login, role, language, push token, points/level)
    - Create TeacherProfile (subjects, pricing, rating, payout account)
    - Create StudentProfile
"""

from decimal import Decimal

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                (
                    "is_superuser",
                    models.BooleanField(
                        default=False,
                        help_text="Designates that this user has all permissions without explicitly assigning them.",
                        verbose_name="superuser status",
                    ),
                ),
                (
                    "email",
                    models.EmailField(
                        db_index=True,
                        help_text="User's email address (primary identifier)",
                        max_length=254,
                        unique=True,
                    ),
                ),
                ("first_name", models.CharField(blank=True, default="", max_length=50)),
                ("last_name", models.CharField(blank=True, default="", max_length=50)),
                (
                    "role",
                    models.CharField(
                        choices=[("student", "Student"), ("teacher", "Teacher"), ("admin", "Admin")],
                        db_index=True,
                        default="student",
                        help_text="Marketplace role",
                        max_length=20,
                    ),
                ),
                (
                    "preferred_language",
                    models.CharField(
                        choices=[("en", "English"), ("ar", "Arabic")],
                        default="en",
                        help_text="Language used for notifications",
                        max_length=2,
                    ),
                ),
                (
                    "push_token",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Encrypted push notification device token",
                    ),
                ),
                ("points", models.PositiveIntegerField(default=0, help_text="Reward balance")),
                (
                    "level",
                    models.CharField(
                        choices=[
                            ("bronze", "Bronze"),
                            ("silver", "Silver"),
                            ("gold", "Gold"),
                            ("platinum", "Platinum"),
                        ],
                        db_index=True,
                        default="bronze",
                        help_text="Reward tier derived from points",
                        max_length=20,
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text="Whether this user account is active. Deselect instead of deleting.",
                    ),
                ),
                (
                    "is_staff",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the user can access the admin site.",
                    ),
                ),
                ("date_joined", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "groups",
                    models.ManyToManyField(
                        blank=True,
                        help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.group",
                        verbose_name="groups",
                    ),
                ),
                (
                    "user_permissions",
                    models.ManyToManyField(
                        blank=True,
                        help_text="Specific permissions for this user.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.permission",
                        verbose_name="user permissions",
                    ),
                ),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "ordering": ["-date_joined"],
            },
        ),
        migrations.CreateModel(
            name="TeacherProfile",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        primary_key=True,
                        related_name="teacher_profile",
                        serialize=False,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "subjects",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Subjects taught, e.g. ['Math', 'Physics']",
                    ),
                ),
                (
                    "hourly_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Hourly rate in major currency units",
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                ("bio", models.TextField(blank=True, default="")),
                ("experience_years", models.PositiveSmallIntegerField(default=0)),
                (
                    "verification_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("verified", "Verified"), ("rejected", "Rejected")],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("average_rating", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=3)),
                ("total_reviews", models.PositiveIntegerField(default=0)),
                (
                    "payout_method",
                    models.CharField(
                        blank=True,
                        choices=[("bank", "Bank account"), ("wallet", "Mobile wallet")],
                        default="",
                        max_length=10,
                    ),
                ),
                ("account_name", models.CharField(blank=True, default="", max_length=100)),
                ("account_number", models.CharField(blank=True, default="", max_length=64)),
                ("bank_name", models.CharField(blank=True, default="", max_length=100)),
                ("wallet_provider", models.CharField(blank=True, default="", max_length=50)),
                ("payout_phone_number", models.CharField(blank=True, default="", max_length=20)),
                (
                    "payout_recipient_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Payment gateway payout recipient id",
                        max_length=100,
                    ),
                ),
                (
                    "payout_registration_status",
                    models.CharField(
                        choices=[
                            ("not_registered", "Not registered"),
                            ("pending", "Pending"),
                            ("registered", "Registered"),
                            ("failed", "Failed"),
                        ],
                        default="not_registered",
                        max_length=20,
                    ),
                ),
                ("payout_registration_error", models.TextField(blank=True, default="")),
            ],
            options={
                "verbose_name": "teacher profile",
                "verbose_name_plural": "teacher profiles",
            },
        ),
        migrations.CreateModel(
            name="StudentProfile",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        primary_key=True,
                        related_name="student_profile",
                        serialize=False,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                ("grade_level", models.CharField(blank=True, default="", max_length=50)),
                ("bio", models.TextField(blank=True, default="")),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
            },
        ),
    ]
