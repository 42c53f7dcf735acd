"""
Paymob Accept API adapter.

All Paymob calls go through this adapter so timeouts, error translation
and logging are handled in one place.

Features:
- Configurable timeouts on all API calls (httpx)
- Gateway errors translated to payments.exceptions
- Structured logging with timing metrics
- Auth token cached in the Django cache between calls
- Callback HMAC verification (SHA-512 over Paymob's fixed key order)

Configuration (via settings):
- PAYMOB_API_URL: API base URL (default: https://accept.paymob.com/api)
- PAYMOB_API_KEY: Merchant API key
- PAYMOB_INTEGRATION_ID: Card integration id
- PAYMOB_IFRAME_ID: Hosted checkout iframe id
- PAYMOB_HMAC_SECRET: Callback signing secret
- PAYMOB_CURRENCY: Currency code (default: EGP)
- PAYMOB_TIMEOUT_SECONDS: API call timeout (default: 10)

Usage:
    from payments.dependencies import get_payment_gateway

    gateway = get_payment_gateway()
    intent = gateway.create_payment(
        amount=Decimal("100.00"),
        merchant_order_id=str(lesson.id),
        customer=BillingCustomer(email=student.email, first_name="Sara"),
    )
    intent.payment_url   # redirect the student here
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import httpx
from django.core.cache import cache

from payments.exceptions import (
    PaymentGatewayError,
    PaymentGatewayRejectedError,
    PaymentGatewayTimeoutError,
    PaymentGatewayUnavailableError,
    SignatureVerificationError,
)

logger = logging.getLogger(__name__)


AUTH_TOKEN_CACHE_KEY = "paymob:auth_token"
# Paymob auth tokens live for an hour; refresh early
AUTH_TOKEN_CACHE_SECONDS = 50 * 60

CHECKOUT_URL = "https://accept.paymob.com/api/acceptance/iframes/{iframe_id}?payment_token={token}"

# Order of the transaction fields concatenated for the callback HMAC
HMAC_FIELDS = (
    "amount_cents",
    "created_at",
    "currency",
    "error_occured",
    "has_parent_transaction",
    "id",
    "integration_id",
    "is_3d_secure",
    "is_auth",
    "is_capture",
    "is_refunded",
    "is_standalone_payment",
    "is_voided",
    "order.id",
    "owner",
    "pending",
    "source_data.pan",
    "source_data.sub_type",
    "source_data.type",
    "success",
)


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class BillingCustomer:
    """Billing details Paymob requires for a payment key; unknown values are "NA"."""

    email: str
    first_name: str = "Student"
    last_name: str = "User"
    phone_number: str = "NA"

    def to_billing_data(self) -> dict[str, str]:
        return {
            "apartment": "NA",
            "email": self.email,
            "floor": "NA",
            "first_name": self.first_name or "Student",
            "last_name": self.last_name or "User",
            "phone_number": self.phone_number or "NA",
            "city": "Cairo",
            "country": "EG",
            "street": "NA",
            "building": "NA",
            "shipping_method": "NA",
            "postal_code": "NA",
            "state": "NA",
        }


@dataclass
class PaymentIntentResult:
    """
    Result of creating a hosted-checkout payment.

    Attributes:
        gateway_order_id: Paymob order id (matches obj.order.id in callbacks)
        payment_token: Payment key for the hosted iframe
        payment_url: Checkout URL for the student
        amount_cents: Charged amount in minor units
    """

    gateway_order_id: str
    payment_token: str
    payment_url: str
    amount_cents: int


@dataclass
class PayoutResult:
    id: str
    status: str
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class PayoutRecipient:
    """Payout destination registered with Paymob."""

    name: str
    email: str
    method: str
    phone: str = ""
    account_number: str = ""
    bank_name: str = ""


def to_minor_units(amount: Decimal) -> int:
    """Convert a decimal amount to integer minor units (piasters)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _hmac_value(obj: dict[str, Any], dotted_key: str) -> str:
    value: Any = obj
    for part in dotted_key.split("."):
        value = value.get(part) if isinstance(value, dict) else None
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def compute_callback_hmac(obj: dict[str, Any], secret: str) -> str:
    """SHA-512 HMAC (hex) of the transaction fields in Paymob's order."""
    message = "".join(_hmac_value(obj, key) for key in HMAC_FIELDS)
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha512).hexdigest()


# =============================================================================
# Adapter
# =============================================================================


class PaymobAdapter:
    """
    HTTP client for the Paymob Accept API.

    A custom httpx transport can be passed for tests
    (httpx.MockTransport).
    """

    def __init__(
        self,
        *,
        api_key: str,
        integration_id: str | int,
        iframe_id: str | int,
        hmac_secret: str,
        base_url: str = "https://accept.paymob.com/api",
        currency: str = "EGP",
        timeout: float = 10.0,
        payment_key_expiration: int = 3600,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self.integration_id = integration_id
        self.iframe_id = iframe_id
        self._hmac_secret = hmac_secret
        self._base_url = base_url.rstrip("/")
        self.currency = currency
        self._timeout = timeout
        self._payment_key_expiration = payment_key_expiration
        self._transport = transport

    # ── Transport ───────────────────────────────────────────────────────

    def _request(
        self,
        operation: str,
        path: str,
        json_body: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}/{path.lstrip('/')}"
        log_context = {"operation": operation, "path": path}

        start_time = time.time()
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(url, json=json_body, headers=headers)
        except httpx.TimeoutException as exc:
            self._handle_paymob_error(exc, log_context, start_time)
            raise PaymentGatewayTimeoutError(f"Paymob {operation} timed out") from exc
        except httpx.TransportError as exc:
            self._handle_paymob_error(exc, log_context, start_time)
            raise PaymentGatewayUnavailableError(f"Paymob unreachable: {exc}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            # Undecodable bodies, redirect loops, malformed URLs
            self._handle_paymob_error(exc, log_context, start_time)
            raise PaymentGatewayError(f"Paymob {operation} failed: {exc}") from exc

        duration_ms = (time.time() - start_time) * 1000

        if response.status_code >= 400:
            logger.error(
                f"Paymob API error {response.status_code} for {operation}: {response.text[:500]}",
                extra={**log_context, "status_code": response.status_code, "duration_ms": duration_ms},
            )
            error_class = (
                PaymentGatewayUnavailableError
                if response.status_code >= 500
                else PaymentGatewayRejectedError
            )
            raise error_class(
                f"Paymob {operation} failed with status {response.status_code}",
                status_code=response.status_code,
            )

        logger.info(
            "Paymob operation completed",
            extra={**log_context, "duration_ms": duration_ms},
        )

        try:
            body = response.json()
        except ValueError as exc:
            raise PaymentGatewayError(
                f"Paymob {operation} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc
        if not isinstance(body, dict):
            raise PaymentGatewayError(f"Paymob {operation} returned an unexpected body")
        return body

    def _handle_paymob_error(
        self,
        error: Exception,
        log_context: dict[str, Any],
        start_time: float,
    ) -> None:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"Paymob operation failed: {type(error).__name__}",
            extra={**log_context, "error": str(error), "duration_ms": duration_ms},
        )

    @staticmethod
    def _require(body: dict[str, Any], key: str, operation: str) -> Any:
        value = body.get(key)
        if value in (None, ""):
            raise PaymentGatewayError(f"Paymob {operation} response is missing '{key}'")
        return value

    # ── Authentication ──────────────────────────────────────────────────

    def get_auth_token(self) -> str:
        """Return a cached auth token, requesting a new one when missing."""
        token = cache.get(AUTH_TOKEN_CACHE_KEY)
        if token:
            return token

        body = self._request("authenticate", "auth/tokens", {"api_key": self._api_key})
        token = self._require(body, "token", "authenticate")
        cache.set(AUTH_TOKEN_CACHE_KEY, token, AUTH_TOKEN_CACHE_SECONDS)
        return token

    # ── Payments ────────────────────────────────────────────────────────

    def create_payment(
        self,
        amount: Decimal,
        merchant_order_id: str,
        customer: BillingCustomer,
    ) -> PaymentIntentResult:
        """
        Create an order and a payment key for hosted checkout.

        Raises:
            PaymentGatewayError: On any gateway failure
        """
        amount_cents = to_minor_units(amount)
        auth_token = self.get_auth_token()

        order = self._request(
            "create_order",
            "ecommerce/orders",
            {
                "auth_token": auth_token,
                "delivery_needed": False,
                "amount_cents": amount_cents,
                "currency": self.currency,
                "merchant_order_id": merchant_order_id,
                "items": [],
            },
        )
        gateway_order_id = str(self._require(order, "id", "create_order"))

        payment_key = self._request(
            "create_payment_key",
            "acceptance/payment_keys",
            {
                "auth_token": auth_token,
                "amount_cents": amount_cents,
                "expiration": self._payment_key_expiration,
                "order_id": gateway_order_id,
                "billing_data": customer.to_billing_data(),
                "currency": self.currency,
                "integration_id": self.integration_id,
            },
        )
        token = self._require(payment_key, "token", "create_payment_key")

        return PaymentIntentResult(
            gateway_order_id=gateway_order_id,
            payment_token=token,
            payment_url=CHECKOUT_URL.format(iframe_id=self.iframe_id, token=token),
            amount_cents=amount_cents,
        )

    def verify_callback(self, obj: dict[str, Any], received_hmac: str | None) -> None:
        """
        Check a transaction callback's HMAC.

        Raises:
            SignatureVerificationError: If the HMAC is missing or wrong
        """
        if not received_hmac or not self._hmac_secret:
            raise SignatureVerificationError("Missing HMAC signature")

        expected = compute_callback_hmac(obj, self._hmac_secret)
        if not hmac.compare_digest(expected, received_hmac.lower()):
            raise SignatureVerificationError("Invalid HMAC signature")

    # ── Payouts ─────────────────────────────────────────────────────────

    def _payout_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    def register_payout_recipient(self, recipient: PayoutRecipient) -> str:
        """Register a payout destination and return its recipient id."""
        body = self._request(
            "register_payout_recipient",
            "acceptance/payouts/recipients",
            {
                "name": recipient.name,
                "email": recipient.email,
                "phone": recipient.phone,
                "type": recipient.method,
                "account_number": recipient.account_number,
                "bank_name": recipient.bank_name,
            },
            headers=self._payout_headers(),
        )
        return str(self._require(body, "id", "register_payout_recipient"))

    def create_payout(self, amount: Decimal, recipient_id: str, description: str) -> PayoutResult:
        """
        Send money to a registered recipient.

        Raises:
            PaymentGatewayError: On any gateway failure
        """
        body = self._request(
            "create_payout",
            "acceptance/payout",
            {
                "amount": to_minor_units(amount),
                "currency": self.currency,
                "recipient": recipient_id,
                "description": description,
            },
            headers=self._payout_headers(),
        )
        return PayoutResult(
            id=str(self._require(body, "id", "create_payout")),
            status=str(body.get("status", "")),
            raw_response=body,
        )
