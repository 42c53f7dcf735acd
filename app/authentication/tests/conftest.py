"""
Test configuration and fixtures for authentication tests.

Users and authenticated clients come from the project conftest.
"""

import pytest


@pytest.fixture
def registration_payload():
    """Valid teacher registration body."""
    return {
        "email": "new.teacher@example.com",
        "password": "Str0ng-Passw0rd!",
        "role": "teacher",
        "first_name": "Mona",
        "last_name": "Hassan",
        "preferred_language": "ar",
        "teacher_profile": {"subjects": ["Math", "Physics"], "hourly_price": "120.00"},
    }
