"""Application tests for ExpireStaleCheckouts — releasing stock held by dead checkouts."""

import pytest
from protean import current_domain
from storefront.checkout.expiry import ExpireStaleCheckouts
from storefront.checkout.service import place_order
from storefront.errors import PaymentLinkFailed
from storefront.order.confirmation import ConfirmOrderPayment
from storefront.order.order import Order, OrderStatus


def _expire(older_than_minutes=0):
    return current_domain.process(
        ExpireStaleCheckouts(older_than_minutes=older_than_minutes),
        asynchronous=False,
    )


@pytest.fixture()
def failed_checkout(store_id, add_product, shipping, config, gateway):
    """An order whose payment link failed: 2 units of a 5-unit product held."""
    gateway.configure(should_succeed=False)
    product_id = add_product(in_stock=5)
    with pytest.raises(PaymentLinkFailed) as exc:
        place_order(store_id, [{"product_id": product_id, "quantity": 2}], shipping, config=config)
    gateway.configure(should_succeed=True)
    return exc.value.order_id, product_id


class TestExpiry:
    def test_failed_checkout_released(self, failed_checkout, stock):
        order_id, product_id = failed_checkout
        assert stock(product_id) == 3

        expired = _expire()

        assert expired == [order_id]
        assert stock(product_id) == 5
        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.EXPIRED.value
        assert order.is_paid is False

    def test_recent_checkouts_left_alone(self, failed_checkout, stock):
        order_id, product_id = failed_checkout

        assert _expire(older_than_minutes=30) == []
        assert stock(product_id) == 3

    def test_orders_with_payment_link_left_alone(self, store_id, add_product, shipping, config, stock):
        product_id = add_product(in_stock=5)
        result = place_order(store_id, [{"product_id": product_id, "quantity": 2}], shipping, config=config)

        assert _expire() == []
        assert stock(product_id) == 3
        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.status == OrderStatus.AWAITING_PAYMENT.value

    def test_expiry_runs_once(self, failed_checkout, stock):
        _, product_id = failed_checkout

        _expire()
        assert _expire() == []
        assert stock(product_id) == 5

    def test_paid_orders_left_alone(self, failed_checkout, stock):
        order_id, product_id = failed_checkout
        current_domain.process(
            ConfirmOrderPayment(order_id=order_id, address="a", phone="p"),
            asynchronous=False,
        )

        assert _expire() == []
        assert stock(product_id) == 1

    def test_late_payment_after_expiry_is_honoured(self, failed_checkout, stock):
        order_id, product_id = failed_checkout
        _expire()

        current_domain.process(
            ConfirmOrderPayment(order_id=order_id, address="a", phone="p"),
            asynchronous=False,
        )

        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.PAID.value
        assert stock(product_id) == 3
