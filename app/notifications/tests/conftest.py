"""
Fixtures for notification tests.

Fixtures:
    push_sender: FakePushSender that records messages
    dispatcher: NotificationDispatcher wired to the fake sender
    recipient: Student with a stored push token
    notification: One unread notification for `student`
"""

import pytest

from notifications.services import NotificationDispatcher
from notifications.tests.factories import NotificationFactory
from notifications.tests.fakes import FakePushSender


@pytest.fixture
def push_sender():
    return FakePushSender()


@pytest.fixture
def dispatcher(push_sender):
    return NotificationDispatcher(push_sender)


@pytest.fixture
def recipient(student):
    student.set_push_token("device-token-1")
    student.save(update_fields=["push_token"])
    return student


@pytest.fixture
def notification(student):
    return NotificationFactory(recipient=student)


@pytest.fixture
def other_user_notifications(teacher):
    return NotificationFactory.create_batch(3, recipient=teacher)
