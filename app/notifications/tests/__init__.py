"""
Tests for notifications app.

This package contains test modules for:
- test_messages.py: Catalogue rendering
- test_dispatcher.py: Push/email delivery and audit records
- test_views.py: API endpoint tests

Usage:
    pytest notifications/tests/
"""
