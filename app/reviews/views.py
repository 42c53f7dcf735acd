"""
Review views.

Endpoints:
    POST   /api/v1/reviews/                      - Review a completed lesson (student)
    GET    /api/v1/reviews/                      - All reviews
    GET    /api/v1/reviews/{id}/                 - One review
    GET    /api/v1/reviews/teacher/{teacher_id}/ - A teacher's reviews (public)
    DELETE /api/v1/reviews/{id}/                 - Delete own review
"""

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from core.responses import error_response

from reviews.dependencies import get_review_service
from reviews.models import Review
from reviews.serializers import ReviewCreateSerializer, ReviewSerializer
from reviews.services import ReviewService


@extend_schema_view(
    list=extend_schema(operation_id="list_reviews", summary="List reviews", tags=["Reviews"]),
    retrieve=extend_schema(operation_id="get_review", summary="Get review", tags=["Reviews"]),
)
class ReviewViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = ReviewSerializer
    queryset = Review.objects.select_related("student", "teacher", "lesson")
    filter_backends = [filters.OrderingFilter]
    ordering_fields = ["created_at", "rating"]
    ordering = ["-created_at"]

    @extend_schema(
        operation_id="create_review",
        summary="Review a completed lesson",
        request=ReviewCreateSerializer,
        responses={
            201: ReviewSerializer,
            400: OpenApiResponse(description="Lesson not completed or already reviewed"),
            403: OpenApiResponse(description="Not the lesson's student"),
        },
        tags=["Reviews"],
    )
    def create(self, request):
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = get_review_service().create_review(request.user, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(self.get_serializer(result.data).data, status=status.HTTP_201_CREATED)

    @extend_schema(operation_id="delete_review", summary="Delete own review", tags=["Reviews"])
    def destroy(self, request, pk=None):
        review = get_object_or_404(Review, pk=pk)

        result = get_review_service().delete_review(request.user, review)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="list_teacher_reviews",
        summary="A teacher's reviews",
        responses={200: ReviewSerializer(many=True)},
        tags=["Reviews"],
    )
    @action(
        detail=False,
        methods=["get"],
        url_path=r"teacher/(?P<teacher_id>\d+)",
        permission_classes=[AllowAny],
    )
    def teacher(self, request, teacher_id=None):
        result = ReviewService.teacher_reviews(int(teacher_id))
        if not result.success:
            return error_response(result)

        queryset = self.filter_queryset(result.data)
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(queryset, many=True).data)
