"""
Reward tiers derived from a user's points balance.

Tier thresholds (inclusive lower bound):
    bronze      0
    silver    200
    gold      500
    platinum 1000
"""

from django.db import models


class UserLevel(models.TextChoices):
    BRONZE = "bronze", "Bronze"
    SILVER = "silver", "Silver"
    GOLD = "gold", "Gold"
    PLATINUM = "platinum", "Platinum"


# Highest threshold first so the first match wins.
LEVEL_THRESHOLDS: tuple[tuple[int, str], ...] = (
    (1000, UserLevel.PLATINUM),
    (500, UserLevel.GOLD),
    (200, UserLevel.SILVER),
    (0, UserLevel.BRONZE),
)


def level_for_points(points: int) -> str:
    """Return the tier for a points balance."""
    for threshold, level in LEVEL_THRESHOLDS:
        if points >= threshold:
            return level
    return UserLevel.BRONZE


def points_to_next_level(points: int) -> int | None:
    """Points still needed for the next tier, or None at the top tier."""
    for threshold, _level in reversed(LEVEL_THRESHOLDS):
        if points < threshold:
            return threshold - points
    return None
