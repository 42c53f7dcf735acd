"""
Notification inbox endpoints.

    GET  /api/v1/notifications/               - Own notifications (?is_read=, ?type=)
    GET  /api/v1/notifications/{id}/          - Detail
    GET  /api/v1/notifications/unread-count/  - Badge count
    POST /api/v1/notifications/{id}/read/     - Mark one as read
    POST /api/v1/notifications/read-all/      - Mark all as read

Only the recipient can see a notification; everyone else gets 404.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.responses import error_response

from notifications.filters import NotificationFilter
from notifications.models import Notification
from notifications.serializers import (
    MarkAllReadResponseSerializer,
    NotificationSerializer,
    UnreadCountSerializer,
)
from notifications.services import NotificationService


@extend_schema_view(
    list=extend_schema(operation_id="list_notifications", summary="List notifications", tags=["Notifications"]),
    retrieve=extend_schema(operation_id="get_notification", summary="Get notification", tags=["Notifications"]),
)
class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = NotificationFilter

    def get_queryset(self):
        return Notification.objects.filter(recipient=self.request.user).select_related("sender")

    @extend_schema(
        operation_id="get_unread_notification_count",
        summary="Unread notification count",
        responses={200: UnreadCountSerializer},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        count = self.get_queryset().filter(is_read=False).count()
        return Response(UnreadCountSerializer({"unread_count": count}).data)

    @extend_schema(
        operation_id="mark_notification_read",
        summary="Mark a notification as read",
        description="Marking an already-read notification succeeds unchanged.",
        request=None,
        responses={200: NotificationSerializer, 404: OpenApiResponse(description="Not found")},
        tags=["Notifications"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        result = NotificationService.mark_as_read(self.get_object(), request.user)
        if not result.success:
            return error_response(result)
        return Response(self.get_serializer(result.data).data)

    @extend_schema(
        operation_id="mark_all_notifications_read",
        summary="Mark all notifications as read",
        request=None,
        responses={200: MarkAllReadResponseSerializer},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["post"], url_path="read-all")
    def read_all(self, request):
        result = NotificationService.mark_all_as_read(request.user)
        return Response(MarkAllReadResponseSerializer({"marked_count": result.data}).data)
