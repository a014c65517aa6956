"""Integration tests against the assembled application in ``src/app.py``."""

import asyncio
import json
import threading

import pytest
from fastapi.testclient import TestClient
from protean import current_domain
from storefront.order.order import Order, OrderStatus
from storefront.product.product import Product
from storefront.webhook.signature import compute_signature

FOREIGN_ORIGIN = "https://evil.example.com"


@pytest.fixture(scope="module")
def real_app(storefront_bed):
    from app import app

    return app


@pytest.fixture()
def client(real_app):
    return TestClient(real_app)


@pytest.fixture()
def app_config(real_app):
    return real_app.state.config


@pytest.fixture()
def checkout_body(add_product):
    product_id = add_product(name="P1", price="10.00", in_stock=5)
    return product_id, {
        "products": [{"productId": product_id, "quantity": 2}],
        "shippingDetails": {
            "addressLine1": "12 Market Street",
            "city": "Kigali",
            "state": "Kigali City",
            "zipCode": "00100",
            "country": "RW",
            "phoneNumber": "+250788000001",
        },
    }


def _without_caller_context(request):
    """Send ``request`` from a thread that has no domain context of its own."""
    outcome = {}

    def run():
        outcome["response"] = request()

    worker = threading.Thread(target=run)
    worker.start()
    worker.join(timeout=10)
    return outcome["response"]


class TestDomainRegistration:
    def test_custom_repositories_registered(self, real_app):
        assert type(current_domain.repository_for(Order)).__name__ == "OrderRepository"
        assert type(current_domain.repository_for(Product)).__name__ == "ProductRepository"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "domain": {"name": "storefront"}}


class TestCheckoutThroughApp:
    def test_checkout_and_webhook(self, client, app_config, store_id, checkout_body, stock):
        product_id, body = checkout_body

        response = client.post(f"/{store_id}/checkout", json=body)

        assert response.status_code == 200
        (order,) = current_domain.repository_for(Order)._dao.query.all().items
        assert order.status == OrderStatus.AWAITING_PAYMENT.value
        assert stock(product_id) == 3

        raw_body = json.dumps(
            {
                "event": "charge.completed",
                "data": {"status": "successful", "amount": "20.00", "meta": {"order_id": str(order.id)}},
            }
        ).encode()
        response = client.post(
            "/webhook",
            content=raw_body,
            headers={
                "Content-Type": "application/json",
                "X-Gateway-Signature": compute_signature(raw_body, app_config.signing_secret),
            },
        )

        assert response.status_code == 200
        assert response.json()["status"] == "processed"
        assert current_domain.repository_for(Order).get(str(order.id)).is_paid is True
        assert stock(product_id) == 1

    def test_request_runs_in_middleware_domain_context(self, client, store_id, checkout_body, stock):
        product_id, body = checkout_body

        response = _without_caller_context(lambda: client.post(f"/{store_id}/checkout", json=body))

        assert response.status_code == 200
        assert stock(product_id) == 3

    def test_installed_gateway_serves_checkout(self, client, gateway, store_id, checkout_body):
        _, body = checkout_body

        response = client.post(f"/{store_id}/checkout", json=body)

        assert response.json()["url"].startswith("https://checkout.fake-gateway.test/pay/")
        assert gateway.calls[-1]["method"] == "create_payment_link"

    def test_gateway_called_off_the_event_loop(self, client, gateway, store_id, checkout_body):
        _, body = checkout_body
        original_create = gateway.create_payment_link
        seen = {}

        def create_and_record(**kwargs):
            try:
                asyncio.get_running_loop()
                seen["loop_running"] = True
            except RuntimeError:
                seen["loop_running"] = False
            return original_create(**kwargs)

        gateway.create_payment_link = create_and_record

        response = client.post(f"/{store_id}/checkout", json=body)

        assert response.status_code == 200
        assert seen == {"loop_running": False}


class TestCors:
    def test_preflight_from_storefront_origin(self, client, app_config, store_id):
        response = client.options(
            f"/{store_id}/checkout",
            headers={"Origin": app_config.storefront_origin, "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == app_config.storefront_origin

    def test_preflight_from_foreign_origin_refused(self, client, store_id):
        response = client.options(
            f"/{store_id}/checkout",
            headers={"Origin": FOREIGN_ORIGIN, "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 400
        assert response.headers.get("access-control-allow-origin") != FOREIGN_ORIGIN

    def test_foreign_origin_never_echoed(self, client, store_id, checkout_body):
        _, body = checkout_body

        response = client.post(f"/{store_id}/checkout", json=body, headers={"Origin": FOREIGN_ORIGIN})

        assert response.headers.get("access-control-allow-origin") != FOREIGN_ORIGIN
