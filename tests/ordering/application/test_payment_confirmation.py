"""Application tests for ConfirmOrderPayment — exactly-once paid transition and shortfalls."""

import pytest
from protean import current_domain
from storefront.checkout.service import place_order
from storefront.errors import OrderNotFound, PaymentLinkFailed
from storefront.order.confirmation import ALREADY_PAID, PROCESSED, ConfirmOrderPayment
from storefront.order.order import Order, OrderStatus
from storefront.product.product import Product


def _confirm(order_id, address="12 Market Street, Kigali", phone="+250788000001"):
    return current_domain.process(
        ConfirmOrderPayment(order_id=order_id, address=address, phone=phone),
        asynchronous=False,
    )


@pytest.fixture()
def placed(store_id, add_product, shipping, config):
    """An order for 2 x P1 (stock 5 before checkout, 3 after)."""
    product_id = add_product(name="P1", price="10.00", in_stock=5)
    result = place_order(store_id, [{"product_id": product_id, "quantity": 2}], shipping, config=config)
    return result.order_id, product_id


class TestFirstConfirmation:
    def test_marks_order_paid(self, placed):
        order_id, _ = placed

        result = _confirm(order_id)

        assert result["status"] == PROCESSED
        order = current_domain.repository_for(Order).get(order_id)
        assert order.is_paid is True
        assert order.status == OrderStatus.PAID.value
        assert order.address == "12 Market Street, Kigali"
        assert order.phone == "+250788000001"
        assert order.paid_at is not None

    def test_deducts_stock_for_each_item(self, placed, stock):
        order_id, product_id = placed

        _confirm(order_id)

        assert stock(product_id) == 1


class TestDuplicateConfirmation:
    def test_second_confirmation_is_a_no_op(self, placed, stock):
        order_id, product_id = placed

        first = _confirm(order_id)
        second = _confirm(order_id, address="elsewhere", phone="000")

        assert first["status"] == PROCESSED
        assert second["status"] == ALREADY_PAID
        assert stock(product_id) == 1
        order = current_domain.repository_for(Order).get(order_id)
        assert order.address == "12 Market Street, Kigali"

    def test_claim_wins_once(self, placed):
        order_id, _ = placed
        repo = current_domain.repository_for(Order)

        assert repo.claim_payment(order_id, address="a", phone="p") is True
        assert repo.claim_payment(order_id, address="b", phone="q") is False


class TestShortfall:
    def test_shortfall_recorded_and_payment_kept(self, placed, stock):
        order_id, product_id = placed
        # Stock was sold elsewhere between checkout and payment
        product_repo = current_domain.repository_for(Product)
        assert product_repo.compare_and_set_stock(product_id, 3, 1)

        result = _confirm(order_id)

        assert result["status"] == PROCESSED
        assert result["shortfalls"] == [{"product_id": product_id, "requested": 2, "available": 1}]
        assert stock(product_id) == 1

        order = current_domain.repository_for(Order).get(order_id)
        assert order.is_paid is True
        assert len(order.shortfalls) == 1
        assert order.shortfalls[0].requested == 2
        assert order.shortfalls[0].available == 1


class TestUnknownOrder:
    def test_unknown_order_raises(self):
        with pytest.raises(OrderNotFound):
            _confirm("missing-order")


class TestLatePayment:
    def test_payment_link_failure_then_payment(self, store_id, add_product, shipping, config, gateway):
        gateway.configure(should_succeed=False)
        product_id = add_product(in_stock=5)

        with pytest.raises(PaymentLinkFailed) as exc:
            place_order(store_id, [{"product_id": product_id, "quantity": 1}], shipping, config=config)

        result = _confirm(exc.value.order_id)

        assert result["status"] == PROCESSED
        order = current_domain.repository_for(Order).get(exc.value.order_id)
        assert order.status == OrderStatus.PAID.value
