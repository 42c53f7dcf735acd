"""
API tests for notification endpoints.

Test Classes:
    TestNotificationList: GET /api/v1/notifications/
    TestUnreadCount: GET /api/v1/notifications/unread-count/
    TestMarkRead: POST /api/v1/notifications/{id}/read/
    TestMarkAllRead: POST /api/v1/notifications/read-all/
"""

from django.urls import reverse
from rest_framework import status

from notifications.models import Notification
from notifications.tests.factories import NotificationFactory


class TestNotificationList:
    def test_returns_own_notifications_only(
        self, client_for, student, notification, other_user_notifications
    ):
        response = client_for(student).get(reverse("notifications:notification-list"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["count"] == 1
        assert response.data["results"][0]["id"] == notification.id
        assert response.data["results"][0]["sender_name"] is None

    def test_filter_by_is_read(self, client_for, student):
        NotificationFactory(recipient=student, is_read=True)
        NotificationFactory(recipient=student, is_read=False)

        response = client_for(student).get(
            reverse("notifications:notification-list"), {"is_read": "false"}
        )

        assert response.data["count"] == 1
        assert response.data["results"][0]["is_read"] is False

    def test_filter_by_type(self, client_for, student):
        NotificationFactory(recipient=student, notification_type="lesson_started")
        NotificationFactory(recipient=student, notification_type="lesson_ended")

        response = client_for(student).get(
            reverse("notifications:notification-list"), {"type": "lesson_ended"}
        )

        assert response.data["count"] == 1

    def test_requires_authentication(self, api_client, db):
        response = api_client.get(reverse("notifications:notification-list"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestUnreadCount:
    def test_counts_unread(self, client_for, student):
        NotificationFactory.create_batch(2, recipient=student)
        NotificationFactory(recipient=student, is_read=True)

        response = client_for(student).get(reverse("notifications:notification-unread-count"))

        assert response.data == {"unread_count": 2}


class TestMarkRead:
    def test_marks_read(self, client_for, student, notification):
        url = reverse("notifications:notification-read", args=[notification.id])

        response = client_for(student).post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["is_read"] is True
        notification.refresh_from_db()
        assert notification.is_read is True

    def test_idempotent(self, client_for, student):
        notification = NotificationFactory(recipient=student, is_read=True)
        url = reverse("notifications:notification-read", args=[notification.id])

        response = client_for(student).post(url)

        assert response.status_code == status.HTTP_200_OK

    def test_other_users_notification_is_404(self, client_for, teacher, notification):
        url = reverse("notifications:notification-read", args=[notification.id])

        response = client_for(teacher).post(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        notification.refresh_from_db()
        assert notification.is_read is False


class TestMarkAllRead:
    def test_marks_all(self, client_for, student, other_user_notifications):
        NotificationFactory.create_batch(3, recipient=student)

        response = client_for(student).post(reverse("notifications:notification-read-all"))

        assert response.data == {"marked_count": 3}
        assert not Notification.objects.filter(recipient=student, is_read=False).exists()
        assert Notification.objects.filter(is_read=False).count() == 3
