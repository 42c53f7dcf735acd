"""
Serializers for notification API.

Serializers:
    NotificationSerializer: Read-only notification details
    UnreadCountSerializer: Response for unread count endpoint
    MarkAllReadResponseSerializer: Response for mark all read endpoint
"""

from __future__ import annotations

from rest_framework import serializers

from notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """Read-only serializer; sender_name is None for system notifications."""

    sender_name = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = [
            "id",
            "notification_type",
            "title",
            "message",
            "language",
            "data",
            "sender_name",
            "channel",
            "is_read",
            "created_at",
        ]
        read_only_fields = fields

    def get_sender_name(self, obj: Notification) -> str | None:
        if obj.sender is None:
            return None
        return obj.sender.get_full_name() or obj.sender.email


class UnreadCountSerializer(serializers.Serializer):
    unread_count = serializers.IntegerField()


class MarkAllReadResponseSerializer(serializers.Serializer):
    marked_count = serializers.IntegerField()
