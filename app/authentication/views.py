"""
Authentication views.

Endpoints:
    POST  /api/v1/auth/register/        - Create a student or teacher account
    POST  /api/v1/auth/token/           - Obtain JWT pair (simplejwt)
    POST  /api/v1/auth/token/refresh/   - Refresh access token (simplejwt)
    GET   /api/v1/auth/me/              - Current user
    PATCH /api/v1/auth/me/              - Update names, language, teaching details
    PUT   /api/v1/auth/push-token/      - Register or clear the device push token
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from core.responses import error_response

from authentication.serializers import (
    PushTokenSerializer,
    RegisterSerializer,
    UserSerializer,
    UserUpdateSerializer,
)
from authentication.services import ProfileService, RegistrationService


class RegisterView(APIView):
    """Register a new account and return it with a JWT pair."""

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="auth_register",
        summary="Register",
        tags=["Auth"],
        request=RegisterSerializer,
        responses={201: UserSerializer},
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RegistrationService.register(**serializer.validated_data)
        if not result.success:
            return error_response(result)

        refresh = RefreshToken.for_user(result.data)
        return Response(
            {
                "user": UserSerializer(result.data).data,
                "access": str(refresh.access_token),
                "refresh": str(refresh),
            },
            status=status.HTTP_201_CREATED,
        )


class MeView(APIView):
    """Read or update the authenticated user."""

    permission_classes = [IsAuthenticated]

    @extend_schema(operation_id="auth_me", summary="Current user", tags=["Auth"])
    def get(self, request):
        return Response(UserSerializer(request.user).data)

    @extend_schema(
        operation_id="auth_me_update",
        summary="Update current user",
        tags=["Auth"],
        request=UserUpdateSerializer,
        responses={200: UserSerializer},
    )
    def patch(self, request):
        serializer = UserUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = ProfileService.update_profile(request.user, serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(UserSerializer(result.data).data)


class PushTokenView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="auth_push_token",
        summary="Register push token",
        tags=["Auth"],
        request=PushTokenSerializer,
    )
    def put(self, request):
        serializer = PushTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        ProfileService.set_push_token(request.user, serializer.validated_data["push_token"])
        return Response({"status": "ok"})
