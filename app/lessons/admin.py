"""Lesson admin configuration."""

from django.contrib import admin

from lessons.models import Lesson, LessonInterest, LessonOffer


class LessonInterestInline(admin.TabularInline):
    model = LessonInterest
    extra = 0
    readonly_fields = ["teacher", "created_at"]


class LessonOfferInline(admin.TabularInline):
    model = LessonOffer
    extra = 0
    readonly_fields = ["teacher", "proposed_price", "message", "created_at"]


@admin.register(Lesson)
class LessonAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "subject",
        "student",
        "accepted_teacher",
        "price",
        "status",
        "meeting_status",
        "payment_status",
        "requested_date",
    ]
    list_filter = ["status", "payment_status", "meeting_status", "request_type"]
    search_fields = ["id", "subject", "title", "student__email", "accepted_teacher__email"]
    raw_id_fields = ["student", "target_teacher", "accepted_teacher"]
    inlines = [LessonInterestInline, LessonOfferInline]
    # State fields change only through the lifecycle services
    readonly_fields = [
        "status",
        "meeting_status",
        "payment_status",
        "meeting_room_id",
        "gateway_order_id",
        "transaction_id",
        "teacher_payout_id",
        "version",
        "created_at",
        "updated_at",
    ]
