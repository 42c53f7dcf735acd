"""Tests for the meeting provider callback endpoint."""

import json

import pytest

from lessons.states import MeetingStatus


pytestmark = pytest.mark.django_db

CALLBACK_URL = "/api/v1/zego/callback/"


@pytest.fixture(autouse=True)
def use_test_service(monkeypatch, meeting_service):
    monkeypatch.setattr("meetings.views.get_meeting_service", lambda: meeting_service)


def post_event(api_client, body):
    return api_client.post(CALLBACK_URL, data=json.dumps(body), content_type="application/json")


class TestZegoCallbackView:
    def test_join_event_starts_meeting(self, api_client, approved_lesson):
        response = post_event(
            api_client,
            {"event": "RoomUserJoin", "room_id": approved_lesson.meeting_room_id, "user_id": "1", "event_time": 1767225600},
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Callback received successfully", "applied": True}
        approved_lesson.refresh_from_db()
        assert approved_lesson.meeting_status == MeetingStatus.ONGOING

    def test_unknown_event_is_200(self, api_client, approved_lesson):
        response = post_event(api_client, {"event": "Whatever", "room_id": approved_lesson.meeting_room_id})

        assert response.status_code == 200
        assert response.json()["applied"] is False

    def test_unknown_room_is_404(self, api_client):
        response = post_event(api_client, {"event": "RoomUserJoin", "room_id": "lesson-missing"})

        assert response.status_code == 404
        assert response.json()["error_code"] == "LESSON_NOT_FOUND"

    def test_missing_room_id_is_400(self, api_client):
        response = post_event(api_client, {"event": "RoomUserJoin"})

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_PAYLOAD"

    def test_invalid_json_is_400(self, api_client):
        response = api_client.post(CALLBACK_URL, data="nope", content_type="application/json")

        assert response.status_code == 400

    def test_millisecond_event_time_is_accepted(self, api_client, approved_lesson):
        response = post_event(
            api_client,
            {"event": "RoomUserJoin", "room_id": approved_lesson.meeting_room_id, "event_time": 1767225600000},
        )

        assert response.status_code == 200
        approved_lesson.refresh_from_db()
        assert approved_lesson.meeting_status == MeetingStatus.ONGOING
