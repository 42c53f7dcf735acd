"""
Service layer primitives.

Business rules live in service classes; views only parse input and render
output. Expected failures (wrong role, wrong lifecycle state, missing
lesson) come back as a failed ServiceResult carrying an error code.
Provider errors are raised inside adapters and turned into results at the
service boundary with handle_exception().

    result = get_lesson_service().cancel_lesson(request.user, lesson)
    if not result.success:
        return error_response(result)
    return Response(LessonSerializer(result.data).data)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service call.

    `error_code` is what clients branch on; core.responses maps it to the
    HTTP status. `errors` carries per-field messages when a rule fails on
    a specific input.
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Build a failed result.

            return ServiceResult.failure("Lesson not found", "LESSON_NOT_FOUND")
        """
        return cls(success=False, error=error, error_code=error_code, errors=errors)

    @classmethod
    def from_exception(cls, exc: Exception) -> ServiceResult[T]:
        """Failed result keeping an application error's own code and message."""
        code = getattr(exc, "error_code", None) or "EXTERNAL_SERVICE_ERROR"
        message = getattr(exc, "message", None) or str(exc)
        return cls(success=False, error=message, error_code=code)

    def to_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error, "error_code": self.error_code}
        if self.errors:
            body["errors"] = self.errors
        return body

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """Logger, transaction and error-conversion helpers for services."""

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
    ) -> ServiceResult:
        """
        Log a provider failure and convert it into a failed result.

            try:
                room = self.provider.create_room(lesson)
            except MeetingProviderError as e:
                return self.handle_exception(e, f"Provisioning room for lesson {lesson.id}")
        """
        message = f"{context}: {exc}" if context else str(exc)
        cls.get_logger().log(log_level, message, exc_info=log_level >= logging.ERROR)
        return ServiceResult.from_exception(exc)
