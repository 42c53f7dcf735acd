"""
Points service.

Usage:
    from points.services import PointsService

    PointsService.add_points(student, settings.POINTS_LESSON_COMPLETED, "lesson completed")
    PointsService.deduct_points(student, settings.POINTS_LESSON_CANCELED, "lesson canceled")

Both operations lock the user row, so concurrent adjustments never lose an
update, and copy the new balance onto the passed instance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.db.models import Count

from core.services import BaseService, ServiceResult

from points.levels import UserLevel, level_for_points

if TYPE_CHECKING:
    from authentication.models import User


class PointsService(BaseService):
    """Adjust reward balances and report tier statistics."""

    @classmethod
    def add_points(cls, user: User, amount: int, reason: str = "") -> ServiceResult[User]:
        return cls._adjust(user, amount, reason)

    @classmethod
    def deduct_points(cls, user: User, amount: int, reason: str = "") -> ServiceResult[User]:
        """Deduct points; the balance never goes below zero."""
        return cls._adjust(user, -amount, reason)

    @classmethod
    def _adjust(cls, user: User, delta: int, reason: str) -> ServiceResult[User]:
        if not isinstance(delta, int):
            return ServiceResult.failure("Points must be an integer", error_code="INVALID_AMOUNT")

        user_model = get_user_model()
        with cls.atomic():
            locked = user_model.objects.select_for_update().get(pk=user.pk)
            locked.points = max(0, locked.points + delta)
            locked.level = level_for_points(locked.points)
            locked.save(update_fields=["points", "level", "updated_at"])

        user.points = locked.points
        user.level = locked.level

        cls.get_logger().info(
            f"Points {delta:+d} for user {user.pk} ({reason}) -> {locked.points}",
            extra={"user_id": user.pk, "delta": delta, "reason": reason},
        )
        return ServiceResult.success(user)

    @classmethod
    def level_stats(cls) -> dict[str, int]:
        """Count of users per tier, every tier present."""
        rows = get_user_model().objects.values("level").annotate(total=Count("pk")).order_by()
        counts = {row["level"]: row["total"] for row in rows}
        return {level: counts.get(level, 0) for level in UserLevel.values}
