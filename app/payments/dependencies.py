"""Factories for the payment gateway and settlement services."""

from functools import lru_cache

from django.conf import settings

from notifications.dependencies import get_notification_dispatcher
from payments.adapters.paymob import PaymobAdapter
from payments.services import PayoutAccountService, SettlementService


@lru_cache
def get_payment_gateway() -> PaymobAdapter:
    return PaymobAdapter(
        api_key=settings.PAYMOB_API_KEY,
        integration_id=settings.PAYMOB_INTEGRATION_ID,
        iframe_id=settings.PAYMOB_IFRAME_ID,
        hmac_secret=settings.PAYMOB_HMAC_SECRET,
        base_url=settings.PAYMOB_API_URL,
        currency=settings.PAYMOB_CURRENCY,
        timeout=settings.PAYMOB_TIMEOUT_SECONDS,
        payment_key_expiration=settings.PAYMOB_PAYMENT_KEY_EXPIRATION,
    )


@lru_cache
def get_settlement_service() -> SettlementService:
    return SettlementService(
        gateway=get_payment_gateway(),
        notifier=get_notification_dispatcher(),
    )


@lru_cache
def get_payout_account_service() -> PayoutAccountService:
    return PayoutAccountService(gateway=get_payment_gateway())
