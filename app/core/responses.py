"""
Translate failed ServiceResults into DRF responses.

Services report failures with an error code; the HTTP status is decided
here once so every view answers the same way:

    *_NOT_FOUND                       -> 404
    authorization codes               -> 403
    upstream provider codes           -> 502
    everything else (validation/state)-> 400

Usage:
    result = service.choose_teacher(...)
    if not result.success:
        return error_response(result)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import status
from rest_framework.response import Response

if TYPE_CHECKING:
    from core.services import ServiceResult


FORBIDDEN_CODES = frozenset(
    {
        "PERMISSION_DENIED",
        "ROLE_NOT_ALLOWED",
        "NOT_LESSON_OWNER",
        "NOT_ACCEPTED_TEACHER",
        "NOT_LESSON_PARTICIPANT",
        "NOT_REVIEW_OWNER",
    }
)

UPSTREAM_CODES = frozenset(
    {
        "EXTERNAL_SERVICE_ERROR",
        "PAYMENT_GATEWAY_ERROR",
        "PAYOUT_FAILED",
        "PAYOUT_REGISTRATION_FAILED",
        "MEETING_PROVIDER_ERROR",
    }
)


def status_for_error_code(error_code: str | None) -> int:
    """Return the HTTP status for a service error code."""
    if not error_code:
        return status.HTTP_400_BAD_REQUEST
    if error_code == "NOT_FOUND" or error_code.endswith("_NOT_FOUND"):
        return status.HTTP_404_NOT_FOUND
    if error_code in FORBIDDEN_CODES:
        return status.HTTP_403_FORBIDDEN
    if error_code in UPSTREAM_CODES:
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_400_BAD_REQUEST


def error_response(result: ServiceResult) -> Response:
    """Build the error Response for a failed ServiceResult."""
    return Response(
        result.to_response(),
        status=status_for_error_code(result.error_code),
    )
