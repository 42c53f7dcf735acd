"""Factory for the review service."""

from functools import lru_cache

from notifications.dependencies import get_notification_dispatcher
from points.services import PointsService
from reviews.services import ReviewService


@lru_cache
def get_review_service() -> ReviewService:
    return ReviewService(notifier=get_notification_dispatcher(), points=PointsService)
