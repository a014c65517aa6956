"""Tests for the Flutterwave adapter against a mocked HTTP transport."""

import json
from decimal import Decimal

import httpx
import pytest
from storefront.config import StorefrontConfig
from storefront.errors import ProcessorError
from storefront.gateway.flutterwave_adapter import FlutterwaveGateway

CUSTOMER = {"phone_number": "+250788000001", "name": "Kigali, Kigali City"}


def _gateway(handler):
    config = StorefrontConfig(
        processor_base_url="https://api.flutterwave.test/v3",
        processor_secret_key="FLWSECK_TEST-123",
        storefront_url="https://shop.example.com",
    )
    return FlutterwaveGateway.from_config(config, transport=httpx.MockTransport(handler))


class TestCreatePaymentLink:
    def test_posts_payment_and_returns_link(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"status": "success", "data": {"link": "https://checkout.flw/pay/abc"}})

        link = _gateway(handler).create_payment_link(Decimal("20.00"), "USD", "ord-001", CUSTOMER)

        assert link.url == "https://checkout.flw/pay/abc"
        assert link.reference.startswith("order_ord-001_")
        assert seen["method"] == "POST"
        assert seen["path"] == "/v3/payments"
        assert seen["auth"] == "Bearer FLWSECK_TEST-123"
        assert seen["body"]["amount"] == "20.00"
        assert seen["body"]["currency"] == "USD"
        assert seen["body"]["tx_ref"] == link.reference
        assert seen["body"]["meta"] == {"order_id": "ord-001"}
        assert seen["body"]["redirect_url"] == "https://shop.example.com/success"

    def test_processor_error_status(self):
        def handler(request):
            return httpx.Response(400, json={"status": "error", "message": "Invalid currency"})

        with pytest.raises(ProcessorError, match="Invalid currency"):
            _gateway(handler).create_payment_link(Decimal("20.00"), "XXX", "ord-001", CUSTOMER)

    def test_missing_link(self):
        def handler(request):
            return httpx.Response(200, json={"status": "success", "data": {}})

        with pytest.raises(ProcessorError):
            _gateway(handler).create_payment_link(Decimal("20.00"), "USD", "ord-001", CUSTOMER)

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ProcessorError, match="timed out"):
            _gateway(handler).create_payment_link(Decimal("20.00"), "USD", "ord-001", CUSTOMER)

    def test_non_json_response(self):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        with pytest.raises(ProcessorError, match="502"):
            _gateway(handler).create_payment_link(Decimal("20.00"), "USD", "ord-001", CUSTOMER)


class TestVerifyTransaction:
    def test_successful_transaction(self):
        def handler(request):
            assert request.url.path == "/v3/transactions/order_ord-001_1700000000000/verify"
            return httpx.Response(
                200,
                json={
                    "status": "success",
                    "data": {
                        "status": "successful",
                        "amount": 20,
                        "tx_ref": "order_ord-001_1700000000000",
                        "meta": {"order_id": "ord-001"},
                    },
                },
            )

        verification = _gateway(handler).verify_transaction("order_ord-001_1700000000000")

        assert verification.successful is True
        assert verification.amount == Decimal("20")
        assert verification.correlation_token == "ord-001"

    def test_token_from_reference_when_meta_missing(self):
        def handler(request):
            return httpx.Response(
                200,
                json={"status": "success", "data": {"status": "successful", "amount": "20.00"}},
            )

        verification = _gateway(handler).verify_transaction("order_ord-002_1700000000000")

        assert verification.correlation_token == "ord-002"
