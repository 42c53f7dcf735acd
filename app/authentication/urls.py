"""
URL configuration for authentication app.

URL structure:
    /api/v1/auth/register/       - Registration
    /api/v1/auth/token/          - JWT obtain pair
    /api/v1/auth/token/refresh/  - JWT refresh
    /api/v1/auth/me/             - Current user (GET/PATCH)
    /api/v1/auth/push-token/     - Device push token (PUT)
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from authentication.views import MeView, PushTokenView, RegisterView

app_name = "authentication"

urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("me/", MeView.as_view(), name="me"),
    path("push-token/", PushTokenView.as_view(), name="push-token"),
]
