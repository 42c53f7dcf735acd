"""
Application error base classes.

Adapters raise these for failures a service cannot express as a plain
ServiceResult (a provider timing out, a forged webhook signature). Each
error carries a message, a machine-readable code and optional details,
rendered by core.exception_handler as:

    {"error": "...", "error_code": "...", "details": {...}}

Hierarchy:
    BaseApplicationError
    ├── NotFoundError
    └── ExternalServiceError
        ├── payments.exceptions.PaymentGatewayError
        └── meetings.exceptions.MeetingProviderError
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "error_code": self.error_code}
        if self.details:
            body["details"] = self.details
        return body

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class NotFoundError(BaseApplicationError):
    default_error_code: str = "NOT_FOUND"


class ExternalServiceError(BaseApplicationError):
    """
    A third-party provider call failed.

    Log the provider's raw response where it is raised; clients only see
    the message and code.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
