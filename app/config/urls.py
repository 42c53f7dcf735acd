"""
URL configuration for the tutoring marketplace.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - Registration, JWT tokens, profile, push token
    /api/v1/lessons/               - Lesson lifecycle (request, negotiate, approve,
                                     join, complete, cancel)
    /api/v1/payments/              - Payment initiation and Paymob callback
        {lesson_id}/initiate/      - Start hosted checkout
        callback/                  - Paymob transaction callback (HMAC)
    /api/v1/zego/callback/         - Meeting provider room events
    /api/v1/teachers/              - Teacher payout account and history
        payment-info/              - GET/PUT payout details
        payout-history/            - Paid and released lessons
    /api/v1/points/                - Reward balance and admin statistics
    /api/v1/reviews/               - Lesson reviews
    /api/v1/notifications/         - Notification inbox

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    path("auth/", include("authentication.urls")),
    path("lessons/", include("lessons.urls")),
    path("payments/", include("payments.urls")),
    path("zego/", include("meetings.urls")),
    path("teachers/", include("payments.teacher_urls")),
    path("points/", include("points.urls")),
    path("reviews/", include("reviews.urls")),
    path("notifications/", include("notifications.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Tutoring Marketplace Admin"
admin.site.site_title = "Marketplace Admin"
admin.site.index_title = "Lessons, payments and accounts"
