"""
DRF views for payments app.

Endpoints:
    POST /api/v1/payments/{lesson_id}/initiate/  - Start hosted checkout (lesson owner)
    POST /api/v1/payments/{lesson_id}/release/   - Retry the teacher payout
    POST /api/v1/payments/callback/              - Paymob transaction callback
    GET  /api/v1/teachers/payment-info/          - Stored payout details (masked)
    PUT  /api/v1/teachers/payment-info/          - Save details and register recipient
    GET  /api/v1/teachers/payout-history/        - Paid and released lessons

Security:
    - Initiation and teacher endpoints require JWT authentication
    - The callback is unauthenticated and verified by HMAC; the signature
      comes from the `hmac` query parameter or body field
"""

from __future__ import annotations

import json
import logging

from django.http import HttpRequest, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import generics
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsTeacher
from core.responses import error_response, status_for_error_code

from authentication.models import TeacherProfile
from lessons.models import Lesson
from lessons.serializers import LessonSerializer
from payments.dependencies import get_payout_account_service, get_settlement_service
from payments.serializers import (
    InitiatePaymentResponseSerializer,
    PaymentInfoSerializer,
    PaymentInfoUpdateSerializer,
    PayoutHistorySerializer,
)
from payments.services import PayoutAccountService

logger = logging.getLogger(__name__)


class InitiatePaymentView(APIView):
    """Create a Paymob checkout for a lesson and return the payment URL."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="payments_initiate",
        summary="Initiate lesson payment",
        tags=["Payments"],
        request=None,
        responses={
            200: InitiatePaymentResponseSerializer,
            400: OpenApiResponse(description="Already paid, or lesson not approved"),
            403: OpenApiResponse(description="Not the lesson owner"),
            502: OpenApiResponse(description="Payment gateway error"),
        },
    )
    def post(self, request, lesson_id):
        lesson = get_object_or_404(Lesson, pk=lesson_id)

        result = get_settlement_service().initiate_payment(request.user, lesson)
        if not result.success:
            return error_response(result)

        return Response(InitiatePaymentResponseSerializer(result.data).data)


class ReleasePaymentView(APIView):
    """Retry the payout of a completed, paid lesson."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="payments_release",
        summary="Release lesson payment to the teacher",
        description=(
            "For a lesson whose payout failed at completion, or whose teacher "
            "registered a payout account afterwards. Accepted teacher or admin."
        ),
        tags=["Payments"],
        request=None,
        responses={
            200: LessonSerializer,
            400: OpenApiResponse(description="Not completed, not paid or already released"),
            403: OpenApiResponse(description="Not the accepted teacher"),
            502: OpenApiResponse(description="PAYOUT_FAILED; the lesson stays paid"),
        },
    )
    def post(self, request, lesson_id):
        lesson = get_object_or_404(Lesson, pk=lesson_id)

        result = get_settlement_service().retry_release(request.user, lesson)
        if not result.success:
            return error_response(result)

        return Response(LessonSerializer(result.data, context={"request": request}).data)


@csrf_exempt
@require_POST
def paymob_callback(request: HttpRequest) -> JsonResponse:
    """
    Handle a Paymob transaction-processed callback.

    Responds 200 for applied, ignored and replayed callbacks so the
    gateway stops retrying; 400 for bad signatures or payloads.
    """
    try:
        payload = json.loads(request.body or b"{}")
    except (ValueError, UnicodeDecodeError):
        logger.warning("Payment callback with invalid JSON body")
        return JsonResponse({"error": "Invalid JSON", "error_code": "INVALID_PAYLOAD"}, status=400)

    if not isinstance(payload, dict):
        return JsonResponse({"error": "Invalid payload", "error_code": "INVALID_PAYLOAD"}, status=400)

    received_hmac = request.GET.get("hmac") or payload.get("hmac")

    result = get_settlement_service().handle_payment_callback(payload, received_hmac)
    if not result.success:
        return JsonResponse(result.to_response(), status=status_for_error_code(result.error_code))

    return JsonResponse({"message": "Callback processed", **result.data})


class PaymentInfoView(APIView):
    """The authenticated teacher's payout account."""

    permission_classes = [IsAuthenticated, IsTeacher]

    @extend_schema(
        operation_id="teachers_payment_info",
        summary="Get payout details",
        tags=["Teachers"],
        responses={200: PaymentInfoSerializer},
    )
    def get(self, request):
        profile, _ = TeacherProfile.objects.get_or_create(user=request.user)
        return Response(PaymentInfoSerializer(profile).data)

    @extend_schema(
        operation_id="teachers_payment_info_update",
        summary="Save payout details",
        description=(
            "Stores the details and registers a payout recipient with the "
            "gateway. A failed registration leaves the details saved with "
            "status 'failed' and can be retried."
        ),
        tags=["Teachers"],
        request=PaymentInfoUpdateSerializer,
        responses={
            200: PaymentInfoSerializer,
            502: OpenApiResponse(description="Recipient registration failed"),
        },
    )
    def put(self, request):
        serializer = PaymentInfoUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = get_payout_account_service().update_payment_info(
            request.user, serializer.validated_data
        )
        if not result.success:
            return error_response(result)

        return Response(PaymentInfoSerializer(result.data).data)


@extend_schema(
    operation_id="teachers_payout_history",
    summary="Payout history",
    tags=["Teachers"],
)
class PayoutHistoryView(generics.ListAPIView):
    permission_classes = [IsAuthenticated, IsTeacher]
    serializer_class = PayoutHistorySerializer

    def get_queryset(self):
        return PayoutAccountService.payout_history(self.request.user)
