"""
Payment-specific exceptions.

Exception Hierarchy:
    PaymentGatewayError (ExternalServiceError) - Base for gateway failures
    ├── PaymentGatewayRejectedError - 4xx from the gateway (permanent)
    ├── PaymentGatewayUnavailableError - 5xx/network failure (transient)
    └── PaymentGatewayTimeoutError - No response in time (transient)
    SignatureVerificationError - Callback HMAC mismatch

Usage:
    from payments.exceptions import PaymentGatewayError

    try:
        payout = gateway.create_payout(...)
    except PaymentGatewayError as e:
        if e.is_retryable:
            ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ExternalServiceError

if TYPE_CHECKING:
    from typing import Any


class PaymentGatewayError(ExternalServiceError):
    """
    Base exception for payment gateway failures.

    Attributes:
        status_code: HTTP status returned by the gateway, if any
        is_retryable: Whether retrying the same call can succeed
    """

    default_error_code: str = "PAYMENT_GATEWAY_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, error_code=error_code, details=details)
        self.status_code = status_code


class PaymentGatewayRejectedError(PaymentGatewayError):
    """The gateway refused the request (bad credentials, invalid params)."""


class PaymentGatewayUnavailableError(PaymentGatewayError):
    """Server error or network failure talking to the gateway."""

    is_retryable: bool = True


class PaymentGatewayTimeoutError(PaymentGatewayError):
    """
    The gateway did not answer within PAYMOB_TIMEOUT_SECONDS.

    The operation may have succeeded on the gateway's side.
    """

    is_retryable: bool = True


class SignatureVerificationError(BaseApplicationError):
    """A callback's HMAC does not match the payload."""

    default_error_code: str = "INVALID_SIGNATURE"
