"""
Meeting provider webhook.

Endpoints:
    POST /api/v1/zego/callback/  - Room lifecycle events from ZEGOCLOUD

Responses:
    200: Event applied, ignored (unknown event, replay) or acknowledged
    400: Malformed payload
    404: No lesson owns the room
"""

from __future__ import annotations

import json
import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from core.responses import status_for_error_code

from meetings.dependencies import get_meeting_service
from meetings.serializers import RoomEventSerializer

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def zego_callback(request: HttpRequest) -> JsonResponse:
    """Receive a room event and apply it to the lesson that owns the room."""
    try:
        body = json.loads(request.body or b"{}")
    except (ValueError, UnicodeDecodeError):
        logger.warning("Room event with invalid JSON body")
        return JsonResponse({"error": "Invalid JSON", "error_code": "INVALID_PAYLOAD"}, status=400)

    serializer = RoomEventSerializer(data=body if isinstance(body, dict) else {})
    if not serializer.is_valid():
        logger.warning("Malformed room event", extra={"errors": serializer.errors})
        return JsonResponse(
            {"error": "Invalid payload", "error_code": "INVALID_PAYLOAD", "errors": serializer.errors},
            status=400,
        )

    data = serializer.validated_data
    result = get_meeting_service().handle_event(
        event=data["event"],
        room_id=data["room_id"],
        user_id=data.get("user_id"),
        event_time=data.get("event_time"),
    )
    if not result.success:
        return JsonResponse(result.to_response(), status=status_for_error_code(result.error_code))

    return JsonResponse({"message": "Callback received successfully", "applied": result.data})
