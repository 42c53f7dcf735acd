"""
In-memory stand-ins for the push provider.

Shared by every app whose tests drive code that notifies users.

Usage:
    from notifications.tests.fakes import FakePushSender, RecordingDispatcher

    dispatcher = RecordingDispatcher(FakePushSender())
    service = LessonService(notifier=dispatcher, ...)
    ...
    assert dispatcher.types_sent_to(teacher) == ["lesson_request"]
"""

from django.db import connection

from notifications.push import PushDeliveryError
from notifications.services import NotificationDispatcher


class FakePushSender:
    """Records sent messages; can be told to fail."""

    def __init__(self, fail_with: PushDeliveryError | None = None):
        self.fail_with = fail_with
        self.sent = []

    def send(self, token, title, body, data=None):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append({"token": token, "title": title, "body": body, "data": data or {}})
        return f"fake-{len(self.sent)}"


class RecordingDispatcher(NotificationDispatcher):
    """
    Real dispatcher that also keeps a list of (recipient, type) calls.

    `savepoint_depths` holds how many savepoints were open at each call,
    so tests can tell whether a notification went out inside a service's
    transaction.
    """

    def __init__(self, push_sender=None):
        super().__init__(push_sender or FakePushSender())
        self.calls = []
        self.savepoint_depths = []

    def notify(self, recipient, message_type, context=None, sender=None, data=None):
        self.calls.append((recipient.pk, message_type))
        self.savepoint_depths.append(len(connection.savepoint_ids))
        return super().notify(recipient, message_type, context, sender, data)

    def types_sent_to(self, user):
        return [message_type for pk, message_type in self.calls if pk == user.pk]
