"""
Payment gateway adapters.

Usage:
    from payments.adapters import PaymobAdapter
"""

from payments.adapters.paymob import (
    BillingCustomer,
    PaymentIntentResult,
    PaymobAdapter,
    PayoutRecipient,
    PayoutResult,
    compute_callback_hmac,
)

__all__ = [
    "BillingCustomer",
    "PaymentIntentResult",
    "PaymobAdapter",
    "PayoutRecipient",
    "PayoutResult",
    "compute_callback_hmac",
]
