"""
Teacher matching for open lesson requests.

A teacher matches an open request when they teach the subject and the
price their own hourly rate implies for the lesson's duration lies within
the tolerance band around the requested price (bounds inclusive):

    (1 - tolerance) * price <= hourly_price * duration / 60 <= (1 + tolerance) * price

Usage:
    from lessons.matching import find_matching_teachers

    teachers = find_matching_teachers("Math", Decimal("100"), 60)
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model


def price_band(price: Decimal, tolerance: Decimal | None = None) -> tuple[Decimal, Decimal]:
    """Inclusive (low, high) lesson price bounds around `price`."""
    if tolerance is None:
        tolerance = Decimal(str(settings.LESSON_PRICE_MATCH_TOLERANCE))
    price = Decimal(price)
    return price * (1 - tolerance), price * (1 + tolerance)


def find_matching_teachers(
    subject: str,
    price: Decimal,
    duration_minutes: int,
    tolerance: Decimal | None = None,
) -> list:
    """
    Active teachers who teach `subject` at a rate inside the price band.

    The hourly range is narrowed in the database; subjects are matched in
    Python because list containment on JSON fields is not portable.
    """
    low, high = price_band(price, tolerance)
    hourly_low = low * 60 / duration_minutes
    hourly_high = high * 60 / duration_minutes

    candidates = (
        get_user_model()
        .objects.teachers()
        .filter(
            teacher_profile__hourly_price__gte=hourly_low.quantize(Decimal("0.01")) - Decimal("0.01"),
            teacher_profile__hourly_price__lte=hourly_high.quantize(Decimal("0.01")) + Decimal("0.01"),
        )
        .order_by("id")
    )

    return [
        teacher
        for teacher in candidates
        if teacher.teacher_profile.teaches(subject)
        and low <= teacher.teacher_profile.lesson_price_for(duration_minutes) <= high
    ]
