"""
Root pytest configuration for the Django project.

This module configures pytest-django and provides project-wide fixtures
(users in each role and authenticated API clients). App-specific fixtures
live in each app's tests/conftest.py.
"""

import os

import django
import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}

    # Use fast password hasher for tests
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]

    # No Redis in tests; the gateway token cache works the same in memory
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
    }

    # The test client speaks plain HTTP
    settings.SECURE_SSL_REDIRECT = False


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_integration.py -> e2e (full lesson journeys)
    - test_views.py, test_services.py, test_webhooks.py, ... -> integration
    - test_models.py, test_adapters.py, test_levels.py, ... -> unit
    - Unmatched files -> integration

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_integration.py"]

    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_webhooks.py",
        "test_dispatcher.py",
        "test_settlement.py",
        "test_concurrency.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_serializers.py",
        "test_adapters.py",
        "test_levels.py",
        "test_crypto.py",
        "test_responses.py",
        "test_messages.py",
        "test_matching.py",
    ]

    for item in items:
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Users
# =============================================================================


@pytest.fixture
def student(db):
    from authentication.tests.factories import StudentFactory

    return StudentFactory()


@pytest.fixture
def teacher(db):
    """Math teacher at 90/hour with a registered payout recipient."""
    from authentication.tests.factories import TeacherFactory

    return TeacherFactory(
        teacher_profile__subjects=["Math"],
        teacher_profile__hourly_price=90,
        teacher_profile__registered_payout=True,
    )


@pytest.fixture
def other_teacher(db):
    from authentication.tests.factories import TeacherFactory

    return TeacherFactory(
        teacher_profile__subjects=["Math"],
        teacher_profile__hourly_price=110,
    )


@pytest.fixture
def admin_user(db):
    from authentication.tests.factories import AdminFactory

    return AdminFactory()


# =============================================================================
# API clients
# =============================================================================


@pytest.fixture
def api_client():
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def client_for():
    """
    Build an APIClient authenticated as the given user via JWT.

    Usage:
        response = client_for(student).get("/api/v1/lessons/")
    """
    from rest_framework.test import APIClient
    from rest_framework_simplejwt.tokens import RefreshToken

    def _make(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _make
