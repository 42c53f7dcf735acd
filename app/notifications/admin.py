"""Django admin configuration for notifications."""

from django.contrib import admin

from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Read-mostly audit view of dispatched notifications."""

    list_display = [
        "id",
        "notification_type",
        "recipient",
        "channel",
        "delivered",
        "is_read",
        "created_at",
    ]
    list_filter = ["notification_type", "channel", "delivered", "is_read", "language"]
    search_fields = ["title", "recipient__email"]
    raw_id_fields = ["sender", "recipient"]
    readonly_fields = ["created_at", "updated_at"]
    ordering = ["-created_at"]
