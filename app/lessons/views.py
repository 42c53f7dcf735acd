"""
Views for the lessons API.

Endpoints:
    POST   /api/v1/lessons/                                   - Request a lesson (student)
    GET    /api/v1/lessons/                                   - Role-scoped list
    GET    /api/v1/lessons/{id}/                              - Detail
    GET    /api/v1/lessons/requests/                          - Pending requests for a teacher
    POST   /api/v1/lessons/requests/{id}/respond/             - Accept or reject (teacher)
    POST   /api/v1/lessons/{id}/counter-offer/                - Propose a price (teacher)
    GET    /api/v1/lessons/{id}/offers/                       - Offers (owner)
    PATCH  /api/v1/lessons/{id}/update-price/                 - Change price (owner)
    POST   /api/v1/lessons/{id}/choose-teacher/{teacher_id}/  - Approve with a teacher (owner)
    GET    /api/v1/lessons/{id}/interested-teachers/          - Interested teachers (owner)
    GET    /api/v1/lessons/{id}/join-token/                   - Own meeting token
    DELETE /api/v1/lessons/{id}/cancel/                       - Cancel (owner)
    PATCH  /api/v1/lessons/{id}/complete/                     - Complete (accepted teacher)

List filters: status, subject, payment_status, request_type,
requested_after, requested_before; ordering by created_at,
requested_date or price; `fields=` restricts the returned fields.
"""

from __future__ import annotations

from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsTeacher
from core.responses import error_response

from lessons.dependencies import get_lesson_service
from lessons.filters import LessonFilter
from lessons.models import Lesson
from lessons.serializers import (
    ChooseTeacherSerializer,
    CounterOfferSerializer,
    InterestedTeacherSerializer,
    LessonCreateSerializer,
    LessonOfferSerializer,
    LessonSerializer,
    RespondResultSerializer,
    RespondSerializer,
    UpdatePriceSerializer,
)
from lessons.services import LessonService
from meetings.serializers import JoinTokenSerializer

UUID_PATTERN = "[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"


@extend_schema_view(
    list=extend_schema(
        operation_id="list_lessons",
        summary="List lessons",
        parameters=[
            OpenApiParameter(
                name="fields",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Comma-separated field names to return",
                required=False,
            ),
        ],
        tags=["Lessons"],
    ),
    retrieve=extend_schema(
        operation_id="get_lesson",
        summary="Get lesson",
        responses={200: LessonSerializer, 403: OpenApiResponse(description="No access")},
        tags=["Lessons"],
    ),
)
class LessonViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    Lesson lifecycle endpoints.

    Listing is scoped by role. Detail actions load the lesson by id and
    let LessonService decide access, so a caller without rights gets 403
    with an error code rather than 404.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = LessonSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = LessonFilter
    ordering_fields = ["created_at", "requested_date", "price"]
    ordering = ["-created_at"]
    lookup_value_regex = UUID_PATTERN

    def get_queryset(self):
        queryset = LessonService.visible_lessons(self.request.user)
        if queryset is None:
            raise PermissionDenied("Your role cannot list lessons.")
        return queryset

    def get_lesson(self) -> Lesson:
        return get_object_or_404(
            Lesson.objects.select_related("student", "accepted_teacher", "target_teacher"),
            pk=self.kwargs["pk"],
        )

    def lesson_response(self, lesson: Lesson, status_code: int = status.HTTP_200_OK) -> Response:
        return Response(self.get_serializer(lesson).data, status=status_code)

    @extend_schema(
        operation_id="create_lesson",
        summary="Request a lesson",
        request=LessonCreateSerializer,
        responses={201: LessonSerializer},
        tags=["Lessons"],
    )
    def create(self, request):
        serializer = LessonCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = get_lesson_service().create_lesson_request(request.user, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return self.lesson_response(result.data, status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        result = get_lesson_service().get_lesson(request.user, self.get_lesson())
        if not result.success:
            return error_response(result)
        return self.lesson_response(result.data)

    # =========================================================================
    # Teacher requests
    # =========================================================================

    @extend_schema(
        operation_id="list_lesson_requests",
        summary="Pending lesson requests",
        responses={200: LessonSerializer(many=True)},
        tags=["Lessons"],
    )
    @action(detail=False, methods=["get"], url_path="requests", permission_classes=[IsAuthenticated, IsTeacher])
    def requests(self, request):
        queryset = LessonService.list_pending_requests(request.user)
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(queryset, many=True).data)

    @extend_schema(
        operation_id="respond_to_lesson_request",
        summary="Accept or reject a lesson request",
        request=RespondSerializer,
        responses={200: RespondResultSerializer},
        tags=["Lessons"],
    )
    @action(
        detail=False,
        methods=["post"],
        url_path=rf"requests/(?P<lesson_id>{UUID_PATTERN})/respond",
        permission_classes=[IsAuthenticated, IsTeacher],
    )
    def respond(self, request, lesson_id=None):
        lesson = get_object_or_404(Lesson, pk=lesson_id)
        serializer = RespondSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = get_lesson_service().respond_to_lesson_request(
            request.user, lesson, serializer.validated_data["response"]
        )
        if not result.success:
            return error_response(result)
        return Response(RespondResultSerializer(result.data).data)

    @extend_schema(
        operation_id="counter_offer",
        summary="Propose a different price",
        request=CounterOfferSerializer,
        responses={201: LessonOfferSerializer},
        tags=["Lessons"],
    )
    @action(
        detail=True,
        methods=["post"],
        url_path="counter-offer",
        permission_classes=[IsAuthenticated, IsTeacher],
    )
    def counter_offer(self, request, pk=None):
        lesson = self.get_lesson()
        serializer = CounterOfferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = get_lesson_service().counter_offer(request.user, lesson, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(LessonOfferSerializer(result.data).data, status=status.HTTP_201_CREATED)

    # =========================================================================
    # Student negotiation
    # =========================================================================

    @extend_schema(
        operation_id="list_lesson_offers",
        summary="Offers for a lesson",
        responses={200: LessonOfferSerializer(many=True)},
        tags=["Lessons"],
    )
    @action(detail=True, methods=["get"])
    def offers(self, request, pk=None):
        result = get_lesson_service().get_offers(request.user, self.get_lesson())
        if not result.success:
            return error_response(result)
        return Response(LessonOfferSerializer(result.data, many=True).data)

    @extend_schema(
        operation_id="list_interested_teachers",
        summary="Teachers interested in a lesson",
        responses={200: InterestedTeacherSerializer(many=True)},
        tags=["Lessons"],
    )
    @action(detail=True, methods=["get"], url_path="interested-teachers")
    def interested_teachers(self, request, pk=None):
        lesson = self.get_lesson()
        result = get_lesson_service().get_interested_teachers(request.user, lesson)
        if not result.success:
            return error_response(result)

        offers = {offer.teacher_id: offer for offer in lesson.offers.all()}
        serializer = InterestedTeacherSerializer(
            result.data, many=True, context={"offers_by_teacher": offers}
        )
        return Response(serializer.data)

    @extend_schema(
        operation_id="update_lesson_price",
        summary="Change the requested price",
        request=UpdatePriceSerializer,
        responses={200: LessonSerializer, 400: OpenApiResponse(description="PRICE_LOCKED")},
        tags=["Lessons"],
    )
    @action(detail=True, methods=["patch"], url_path="update-price")
    def update_price(self, request, pk=None):
        lesson = self.get_lesson()
        serializer = UpdatePriceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = get_lesson_service().update_price(request.user, lesson, serializer.validated_data["price"])
        if not result.success:
            return error_response(result)
        return self.lesson_response(result.data)

    @extend_schema(
        operation_id="choose_teacher",
        summary="Approve the lesson with a teacher",
        request=ChooseTeacherSerializer,
        responses={200: LessonSerializer},
        tags=["Lessons"],
    )
    @action(detail=True, methods=["post"], url_path=r"choose-teacher/(?P<teacher_id>\d+)")
    def choose_teacher(self, request, pk=None, teacher_id=None):
        lesson = self.get_lesson()
        serializer = ChooseTeacherSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = get_lesson_service().choose_teacher(
            request.user,
            lesson,
            int(teacher_id),
            final_price=serializer.validated_data.get("final_price"),
        )
        if not result.success:
            return error_response(result)
        return self.lesson_response(result.data)

    @extend_schema(
        operation_id="cancel_lesson",
        summary="Cancel a lesson",
        request=None,
        responses={200: LessonSerializer},
        tags=["Lessons"],
    )
    @action(detail=True, methods=["delete"])
    def cancel(self, request, pk=None):
        result = get_lesson_service().cancel_lesson(request.user, self.get_lesson())
        if not result.success:
            return error_response(result)
        return self.lesson_response(result.data)

    # =========================================================================
    # Session
    # =========================================================================

    @extend_schema(
        operation_id="get_join_token",
        summary="Get own meeting join token",
        responses={200: JoinTokenSerializer},
        tags=["Lessons"],
    )
    @action(detail=True, methods=["get"], url_path="join-token")
    def join_token(self, request, pk=None):
        result = get_lesson_service().get_join_token(request.user, self.get_lesson())
        if not result.success:
            return error_response(result)
        return Response(JoinTokenSerializer(result.data).data)

    @extend_schema(
        operation_id="complete_lesson",
        summary="Complete a lesson",
        description="Releases the payment to the teacher when the lesson is paid.",
        request=None,
        responses={
            200: LessonSerializer,
            502: OpenApiResponse(description="PAYOUT_FAILED; the lesson stays completed"),
        },
        tags=["Lessons"],
    )
    @action(detail=True, methods=["patch"])
    def complete(self, request, pk=None):
        result = get_lesson_service().complete_lesson(request.user, self.get_lesson())
        if not result.success:
            return error_response(result)
        return self.lesson_response(result.data)
