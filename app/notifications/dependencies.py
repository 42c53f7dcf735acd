"""
Factories for the notification collaborators.

Built once per process from settings; tests override them by passing
fakes straight to the engines that consume a dispatcher.
"""

from functools import lru_cache

from django.conf import settings

from notifications.push import FCMPushSender
from notifications.services import NotificationDispatcher


@lru_cache
def get_push_sender() -> FCMPushSender:
    return FCMPushSender(credentials_file=settings.FCM_CREDENTIALS_FILE)


@lru_cache
def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(push_sender=get_push_sender())
