"""
Notification audit model.

Every dispatched notification leaves exactly one Notification row,
whether push delivery succeeded, fell back to email, or reached nobody.
The row is also what users see in their in-app notification list.

Design Decisions:
    - sender uses SET_NULL (system notifications have no sender, and a
      deleted sender must not erase the recipient's history)
    - notification_type is a plain key into notifications.messages, not a
      lookup table
    - data holds the push payload (lesson_id etc.) for client deep links

Usage:
    from notifications.models import Notification

    Notification.objects.filter(recipient=user, is_read=False).count()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel


class DeliveryChannel(models.TextChoices):
    """Channel that actually carried the notification."""

    PUSH = "push", "Push Notification"
    EMAIL = "email", "Email"
    NONE = "none", "Not delivered"


class Notification(BaseModel):
    """
    A notification sent to a user.

    Fields:
        sender: User whose action caused the notification (nullable)
        recipient: User the notification is addressed to
        title: Rendered title in the recipient's language
        message: Rendered body in the recipient's language
        language: Language the message was rendered in (en/ar)
        notification_type: Catalogue key (lesson_request, lesson_approved...)
        data: Extra payload sent with the push message
        channel: push, email or none
        delivered: Whether any channel accepted the message
        is_read: Set by the recipient through the API
    """

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_notifications",
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default="")
    language = models.CharField(max_length=5, default="en")
    notification_type = models.CharField(max_length=50, db_index=True)
    data = models.JSONField(default=dict, blank=True)
    channel = models.CharField(
        max_length=10,
        choices=DeliveryChannel.choices,
        default=DeliveryChannel.NONE,
    )
    delivered = models.BooleanField(default=False)
    is_read = models.BooleanField(default=False, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient", "is_read"], name="notif_recipient_read_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.notification_type} -> {self.recipient_id}"
