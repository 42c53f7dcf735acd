"""
Tests for authentication app.

- test_models.py: Manager, push token encryption, teacher profile pricing
- test_services.py: Registration and profile updates
- test_views.py: Register, token, me endpoints
"""
