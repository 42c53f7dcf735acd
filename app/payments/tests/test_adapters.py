"""Tests for the Paymob adapter against a mocked HTTP transport."""

import hashlib
import hmac
import json
from decimal import Decimal

import httpx
import pytest
from django.core.cache import cache

from payments.adapters.paymob import (
    AUTH_TOKEN_CACHE_KEY,
    BillingCustomer,
    PaymobAdapter,
    PayoutRecipient,
    compute_callback_hmac,
    to_minor_units,
)
from payments.exceptions import (
    PaymentGatewayError,
    PaymentGatewayRejectedError,
    PaymentGatewayTimeoutError,
    PaymentGatewayUnavailableError,
    SignatureVerificationError,
)


class Recorder:
    """httpx handler that answers by path and records requests."""

    def __init__(self, responses):
        self.responses = responses
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        self.requests.append((request.url.path, body, request.headers))
        for suffix, response in self.responses.items():
            if request.url.path.endswith(suffix):
                if isinstance(response, Exception):
                    raise response
                status, payload = response
                return httpx.Response(status, json=payload)
        return httpx.Response(404, json={"detail": "not found"})

    def paths(self):
        return [path for path, _, _ in self.requests]


def make_adapter(handler):
    return PaymobAdapter(
        api_key="key_123",
        integration_id=4242,
        iframe_id=777,
        hmac_secret="secret",
        base_url="https://paymob.test/api",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture(autouse=True)
def clear_token_cache():
    cache.delete(AUTH_TOKEN_CACHE_KEY)
    yield
    cache.delete(AUTH_TOKEN_CACHE_KEY)


CHECKOUT_RESPONSES = {
    "/auth/tokens": (201, {"token": "auth-token"}),
    "/ecommerce/orders": (201, {"id": 3131}),
    "/acceptance/payment_keys": (201, {"token": "payment-key"}),
}


class TestToMinorUnits:
    def test_converts_to_integer_cents(self):
        assert to_minor_units(Decimal("100")) == 10000
        assert to_minor_units(Decimal("99.995")) == 10000
        assert to_minor_units(Decimal("12.34")) == 1234


class TestCreatePayment:
    def test_runs_auth_order_and_payment_key_steps(self):
        handler = Recorder(dict(CHECKOUT_RESPONSES))
        adapter = make_adapter(handler)

        intent = adapter.create_payment(
            amount=Decimal("100.00"),
            merchant_order_id="lesson-uuid",
            customer=BillingCustomer(email="s@example.com", first_name="Sara", last_name=""),
        )

        assert handler.paths() == [
            "/api/auth/tokens",
            "/api/ecommerce/orders",
            "/api/acceptance/payment_keys",
        ]
        assert intent.gateway_order_id == "3131"
        assert intent.amount_cents == 10000
        assert intent.payment_url.endswith("/iframes/777?payment_token=payment-key")

        _, order_body, _ = handler.requests[1]
        assert order_body["merchant_order_id"] == "lesson-uuid"
        assert order_body["amount_cents"] == 10000
        assert order_body["auth_token"] == "auth-token"

        _, key_body, _ = handler.requests[2]
        assert key_body["integration_id"] == 4242
        assert key_body["expiration"] == 3600
        assert key_body["billing_data"]["first_name"] == "Sara"
        assert key_body["billing_data"]["last_name"] == "User"
        assert key_body["billing_data"]["country"] == "EG"

    def test_reuses_cached_auth_token(self):
        handler = Recorder(dict(CHECKOUT_RESPONSES))
        adapter = make_adapter(handler)
        customer = BillingCustomer(email="s@example.com")

        adapter.create_payment(Decimal("10"), "a", customer)
        adapter.create_payment(Decimal("10"), "b", customer)

        assert handler.paths().count("/api/auth/tokens") == 1

    def test_client_error_raises_rejected(self):
        handler = Recorder({**CHECKOUT_RESPONSES, "/ecommerce/orders": (401, {"detail": "bad token"})})

        with pytest.raises(PaymentGatewayRejectedError) as exc_info:
            make_adapter(handler).create_payment(Decimal("10"), "a", BillingCustomer(email="x@example.com"))

        assert exc_info.value.status_code == 401
        assert exc_info.value.error_code == "PAYMENT_GATEWAY_ERROR"
        assert not exc_info.value.is_retryable

    def test_server_error_raises_unavailable(self):
        handler = Recorder({"/auth/tokens": (503, {"detail": "down"})})

        with pytest.raises(PaymentGatewayUnavailableError) as exc_info:
            make_adapter(handler).get_auth_token()

        assert exc_info.value.is_retryable

    def test_timeout_raises_timeout_error(self):
        handler = Recorder({"/auth/tokens": httpx.ReadTimeout("slow")})

        with pytest.raises(PaymentGatewayTimeoutError):
            make_adapter(handler).get_auth_token()

    def test_connection_error_raises_unavailable(self):
        handler = Recorder({"/auth/tokens": httpx.ConnectError("refused")})

        with pytest.raises(PaymentGatewayUnavailableError):
            make_adapter(handler).get_auth_token()

    def test_missing_token_in_response_is_gateway_error(self):
        handler = Recorder({"/auth/tokens": (201, {"profile": {}})})

        with pytest.raises(PaymentGatewayError):
            make_adapter(handler).get_auth_token()

    def test_undecodable_body_is_gateway_error(self):
        def handler(request):
            return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip")

        with pytest.raises(PaymentGatewayError):
            make_adapter(handler).create_payout(Decimal("10"), "rcpt_1", "Payout")

    def test_redirect_loop_is_gateway_error(self):
        handler = Recorder({"/auth/tokens": httpx.TooManyRedirects("loop")})

        with pytest.raises(PaymentGatewayError):
            make_adapter(handler).get_auth_token()


class TestPayouts:
    def test_create_payout_sends_bearer_key_and_minor_units(self):
        handler = Recorder({"/acceptance/payout": (200, {"id": "po_1", "status": "success"})})

        payout = make_adapter(handler).create_payout(Decimal("95.50"), "rcpt_1", "Payout for lesson x")

        path, body, headers = handler.requests[0]
        assert path == "/api/acceptance/payout"
        assert headers["authorization"] == "Bearer key_123"
        assert body == {
            "amount": 9550,
            "currency": "EGP",
            "recipient": "rcpt_1",
            "description": "Payout for lesson x",
        }
        assert payout.id == "po_1"
        assert payout.status == "success"

    def test_register_recipient_returns_id(self):
        handler = Recorder({"/acceptance/payouts/recipients": (201, {"id": 88})})

        recipient_id = make_adapter(handler).register_payout_recipient(
            PayoutRecipient(name="T", email="t@example.com", method="wallet", phone="0100")
        )

        assert recipient_id == "88"
        _, body, _ = handler.requests[0]
        assert body["type"] == "wallet"


class TestCallbackHmac:
    OBJ = {
        "amount_cents": 10000,
        "created_at": "2026-01-10T12:00:00",
        "currency": "EGP",
        "error_occured": False,
        "has_parent_transaction": False,
        "id": 1,
        "integration_id": 2,
        "is_3d_secure": True,
        "is_auth": False,
        "is_capture": False,
        "is_refunded": False,
        "is_standalone_payment": True,
        "is_voided": False,
        "order": {"id": 3},
        "owner": 4,
        "pending": False,
        "source_data": {"pan": "2346", "sub_type": "MasterCard", "type": "card"},
        "success": True,
    }

    def test_concatenates_fields_in_gateway_order(self):
        message = "100002026-01-10T12:00:00EGPfalsefalse12truefalsefalsefalsetruefalse34false2346MasterCardcardtrue"
        expected = hmac.new(b"secret", message.encode(), hashlib.sha512).hexdigest()

        assert compute_callback_hmac(self.OBJ, "secret") == expected

    def test_missing_fields_render_empty(self):
        obj = {**self.OBJ, "source_data": {}}
        assert compute_callback_hmac(obj, "secret") != compute_callback_hmac(self.OBJ, "secret")

    def test_verify_accepts_matching_signature(self):
        adapter = make_adapter(Recorder({}))
        adapter.verify_callback(self.OBJ, compute_callback_hmac(self.OBJ, "secret"))

    def test_verify_accepts_uppercase_hex(self):
        adapter = make_adapter(Recorder({}))
        adapter.verify_callback(self.OBJ, compute_callback_hmac(self.OBJ, "secret").upper())

    @pytest.mark.parametrize("received", [None, "", "deadbeef"])
    def test_verify_rejects_missing_or_wrong_signature(self, received):
        adapter = make_adapter(Recorder({}))

        with pytest.raises(SignatureVerificationError) as exc_info:
            adapter.verify_callback(self.OBJ, received)

        assert exc_info.value.error_code == "INVALID_SIGNATURE"

    def test_verify_rejects_tampered_amount(self):
        adapter = make_adapter(Recorder({}))
        signature = compute_callback_hmac(self.OBJ, "secret")

        with pytest.raises(SignatureVerificationError):
            adapter.verify_callback({**self.OBJ, "amount_cents": 1}, signature)
