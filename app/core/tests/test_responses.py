"""Tests for error code to HTTP status mapping and the DRF exception handler."""

import pytest

from core.exception_handler import application_exception_handler
from core.exceptions import ExternalServiceError, NotFoundError
from core.responses import error_response, status_for_error_code
from core.services import ServiceResult


class TestStatusForErrorCode:
    @pytest.mark.parametrize(
        "code, expected",
        [
            ("LESSON_NOT_FOUND", 404),
            ("TEACHER_NOT_FOUND", 404),
            ("NOT_FOUND", 404),
            ("NOT_LESSON_OWNER", 403),
            ("ROLE_NOT_ALLOWED", 403),
            ("NOT_REVIEW_OWNER", 403),
            ("PAYOUT_FAILED", 502),
            ("PAYMENT_GATEWAY_ERROR", 502),
            ("INVALID_STATE", 400),
            ("ALREADY_PAID", 400),
            ("PRICE_LOCKED", 400),
            ("INVALID_SIGNATURE", 400),
            (None, 400),
        ],
    )
    def test_mapping(self, code, expected):
        assert status_for_error_code(code) == expected

    def test_error_response_body(self):
        result = ServiceResult.failure(
            "Validation failed",
            error_code="VALIDATION_ERROR",
            errors={"account_number": ["This field is required."]},
        )

        response = error_response(result)

        assert response.status_code == 400
        assert response.data == {
            "error": "Validation failed",
            "error_code": "VALIDATION_ERROR",
            "errors": {"account_number": ["This field is required."]},
        }


class TestApplicationExceptionHandler:
    def test_application_error_uses_code_mapping(self):
        response = application_exception_handler(NotFoundError("Lesson not found", error_code="LESSON_NOT_FOUND"), {})

        assert response.status_code == 404
        assert response.data["error_code"] == "LESSON_NOT_FOUND"

    def test_external_error_is_502(self):
        response = application_exception_handler(ExternalServiceError("Paymob down"), {})

        assert response.status_code == 502

    def test_unknown_exceptions_are_left_alone(self):
        assert application_exception_handler(RuntimeError("boom"), {}) is None
