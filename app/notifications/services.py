"""
Notification service layer.

Services:
    NotificationDispatcher: Render, deliver (push, then email) and audit
    NotificationService: Read status management for the in-app list

Design Principles:
    - Dispatch never raises: a failed notification must not abort the
      lesson transition that triggered it
    - Exactly one Notification row is written per dispatch, whatever the
      delivery outcome
    - Push first; email is the fallback when push is unavailable or fails

Usage:
    from notifications.dependencies import get_notification_dispatcher
    from notifications.messages import MessageType

    dispatcher = get_notification_dispatcher()
    dispatcher.notify(
        recipient=lesson.student,
        message_type=MessageType.TEACHER_INTEREST,
        context={"teacher_name": teacher.get_full_name(), "subject": lesson.subject},
        sender=teacher,
        data={"lesson_id": str(lesson.id)},
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.mail import send_mail

from core.services import BaseService, ServiceResult

from notifications.messages import render_message
from notifications.models import DeliveryChannel, Notification
from notifications.push import PushDeliveryError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from authentication.models import User
    from notifications.push import FCMPushSender

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Deliver bilingual notifications and record them.

    The push sender is injected so tests can pass an in-memory fake.
    """

    def __init__(self, push_sender: FCMPushSender):
        self.push_sender = push_sender

    def notify(
        self,
        recipient: User,
        message_type: str,
        context: dict | None = None,
        sender: User | None = None,
        data: dict | None = None,
    ) -> Notification | None:
        """
        Send one notification to one recipient.

        Returns:
            The audit Notification, or None if even the audit write failed
        """
        try:
            return self._dispatch(recipient, message_type, context, sender, data or {})
        except Exception:
            logger.exception(
                f"Notification {message_type} to user {recipient.pk} failed",
                extra={"recipient_id": recipient.pk, "notification_type": message_type},
            )
            return None

    def notify_many(
        self,
        recipients: Iterable[User],
        message_type: str,
        context: dict | None = None,
        sender: User | None = None,
        data: dict | None = None,
    ) -> list[Notification]:
        """Notify each recipient; individual failures are skipped."""
        sent = []
        for recipient in recipients:
            notification = self.notify(recipient, message_type, context, sender, data)
            if notification is not None:
                sent.append(notification)
        return sent

    def _dispatch(
        self,
        recipient: User,
        message_type: str,
        context: dict | None,
        sender: User | None,
        data: dict,
    ) -> Notification:
        language = recipient.preferred_language or "en"
        title, body = render_message(message_type, language, context)
        payload = {"type": message_type, **data}

        channel = DeliveryChannel.NONE
        if self._send_push(recipient, title, body, payload):
            channel = DeliveryChannel.PUSH
        elif self._send_email(recipient, title, body):
            channel = DeliveryChannel.EMAIL

        return Notification.objects.create(
            sender=sender,
            recipient=recipient,
            title=title,
            message=body.replace("\n", " "),
            language=language,
            notification_type=message_type,
            data=payload,
            channel=channel,
            delivered=channel != DeliveryChannel.NONE,
        )

    def _send_push(self, recipient: User, title: str, body: str, data: dict) -> bool:
        token = recipient.get_push_token()
        if not token:
            return False

        try:
            self.push_sender.send(token, title, body, data)
        except PushDeliveryError as e:
            logger.warning(
                f"Push to user {recipient.pk} failed: {e.code} - {e}",
                extra={
                    "recipient_id": recipient.pk,
                    "failure_code": e.code,
                    "is_permanent": e.is_permanent,
                },
            )
            return False
        return True

    def _send_email(self, recipient: User, title: str, body: str) -> bool:
        if not recipient.email:
            return False

        try:
            send_mail(
                subject=title,
                message=body,
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[recipient.email],
            )
        except (OSError, ValueError) as e:
            # smtplib errors are OSError subclasses; BadHeaderError is a ValueError
            logger.warning(
                f"Email to user {recipient.pk} failed: {e}",
                extra={"recipient_id": recipient.pk},
            )
            return False
        return True


class NotificationService(BaseService):
    """
    Read status management.

    Methods:
        mark_as_read: Mark a single notification as read
        mark_all_as_read: Mark all user's unread notifications as read
    """

    @classmethod
    def mark_as_read(
        cls,
        notification: Notification,
        user: User,
    ) -> ServiceResult[Notification]:
        """
        Mark a single notification as read.

        Idempotent. Another user's notification is reported as not found.
        """
        if notification.recipient_id != user.id:
            cls.get_logger().warning(
                f"User {user.id} attempted to mark notification {notification.id} "
                f"owned by user {notification.recipient_id}"
            )
            return ServiceResult.failure(
                "Notification not found",
                error_code="NOTIFICATION_NOT_FOUND",
            )

        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read", "updated_at"])

        return ServiceResult.success(notification)

    @classmethod
    def mark_all_as_read(cls, user: User) -> ServiceResult[int]:
        count = Notification.objects.filter(recipient=user, is_read=False).update(is_read=True)
        cls.get_logger().info(f"Marked {count} notifications as read for user {user.id}")
        return ServiceResult.success(count)
