"""
Payments app configuration.

This app provides lesson payment settlement through Paymob:
- Payment initiation and callback handling
- Teacher payouts and payout recipient registration
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
