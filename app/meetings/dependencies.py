"""Factories for the meeting provider and service."""

from functools import lru_cache

from django.conf import settings

from meetings.adapters.zego import ZegoAdapter
from meetings.services import MeetingService
from notifications.dependencies import get_notification_dispatcher


@lru_cache
def get_meeting_provider() -> ZegoAdapter:
    return ZegoAdapter(
        app_id=settings.ZEGO_APP_ID,
        server_secret=settings.ZEGO_SERVER_SECRET,
        token_ttl_seconds=settings.ZEGO_TOKEN_TTL_SECONDS,
    )


@lru_cache
def get_meeting_service() -> MeetingService:
    return MeetingService(
        provider=get_meeting_provider(),
        notifier=get_notification_dispatcher(),
    )
