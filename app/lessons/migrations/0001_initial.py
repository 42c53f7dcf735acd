"""
Initial schema for lessons.

Changes:
    - Create Lesson with its three FSM state columns (status, meeting_status,
      payment_status), payment references and lifecycle timestamps
    - Create LessonInterest (unique per lesson and teacher)
    - Create LessonOffer (unique per lesson and teacher)
"""

import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django_fsm


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("authentication", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Lesson",
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
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Version for optimistic locking - incremented on each save",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("subject", models.CharField(db_index=True, max_length=100)),
                ("title", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, default="")),
                ("price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("requested_date", models.DateTimeField()),
                ("duration_minutes", models.PositiveIntegerField()),
                (
                    "request_type",
                    models.CharField(
                        choices=[("direct", "Direct"), ("open", "Open")],
                        default="open",
                        max_length=10,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("completed", "Completed"),
                            ("canceled", "Canceled"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Lifecycle state (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "meeting_room_id",
                    models.CharField(
                        blank=True,
                        help_text="Video room id, lesson-<id>",
                        max_length=100,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "meeting_status",
                    django_fsm.FSMField(
                        choices=[
                            ("upcoming", "Upcoming"),
                            ("ongoing", "Ongoing"),
                            ("finished", "Finished"),
                            ("canceled", "Canceled"),
                        ],
                        default="upcoming",
                        max_length=50,
                    ),
                ),
                ("meeting_started_at", models.DateTimeField(blank=True, null=True)),
                ("meeting_ended_at", models.DateTimeField(blank=True, null=True)),
                ("student_join_token", models.TextField(blank=True, default="")),
                ("teacher_join_token", models.TextField(blank=True, default="")),
                (
                    "payment_status",
                    django_fsm.FSMField(
                        choices=[
                            ("unpaid", "Unpaid"),
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("held", "Held"),
                            ("released", "Released"),
                            ("refunded", "Refunded"),
                        ],
                        db_index=True,
                        default="unpaid",
                        max_length=50,
                    ),
                ),
                ("payment_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("gateway_order_id", models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ("transaction_id", models.CharField(blank=True, max_length=64, null=True)),
                (
                    "payment_record_status",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("failed", "Failed"),
                            ("released", "Released"),
                            ("refunded", "Refunded"),
                        ],
                        max_length=10,
                        null=True,
                    ),
                ),
                ("amount_paid", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("teacher_payout_id", models.CharField(blank=True, max_length=64, null=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("released_at", models.DateTimeField(blank=True, null=True)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("canceled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "accepted_teacher",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="accepted_lessons",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="requested_lessons",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "target_teacher",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="direct_lesson_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="LessonInterest",
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
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "lesson",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="interests",
                        to="lessons.lesson",
                    ),
                ),
                (
                    "teacher",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lesson_interests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
        migrations.AddField(
            model_name="lesson",
            name="interested_teachers",
            field=models.ManyToManyField(
                blank=True,
                related_name="interested_lessons",
                through="lessons.LessonInterest",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
        migrations.CreateModel(
            name="LessonOffer",
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
                ("proposed_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("message", models.CharField(blank=True, default="", max_length=500)),
                (
                    "lesson",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="offers",
                        to="lessons.lesson",
                    ),
                ),
                (
                    "teacher",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lesson_offers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
        migrations.AddIndex(
            model_name="lesson",
            index=models.Index(fields=["student", "status"], name="lesson_student_status_idx"),
        ),
        migrations.AddIndex(
            model_name="lesson",
            index=models.Index(fields=["subject", "status"], name="lesson_subject_status_idx"),
        ),
        migrations.AddConstraint(
            model_name="lesson",
            constraint=models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="lesson_price_non_negative",
            ),
        ),
        migrations.AddConstraint(
            model_name="lesson",
            constraint=models.CheckConstraint(
                condition=models.Q(duration_minutes__gt=0),
                name="lesson_duration_positive",
            ),
        ),
        migrations.AddConstraint(
            model_name="lessoninterest",
            constraint=models.UniqueConstraint(fields=("lesson", "teacher"), name="unique_lesson_interest"),
        ),
        migrations.AddConstraint(
            model_name="lessonoffer",
            constraint=models.UniqueConstraint(fields=("lesson", "teacher"), name="unique_lesson_offer"),
        ),
    ]
