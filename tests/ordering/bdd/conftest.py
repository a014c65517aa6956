"""Shared BDD fixtures and step definitions for checkout."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then
from storefront.order.order import Order


@pytest.fixture()
def products():
    """Product ids by name."""
    return {}


@pytest.fixture()
def outcome():
    """What the last When step produced: result, error and acknowledgements."""
    return {"result": None, "error": None, "acks": []}


@given(parsers.cfparse('a store with product "{name}" priced {price} with {in_stock:d} in stock'))
def _(add_product, products, name, price, in_stock):
    products[name] = add_product(name=name, price=price, in_stock=in_stock)


@given("the payment processor is unavailable")
def _(gateway):
    gateway.configure(should_succeed=False, failure_reason="Processor unavailable")


@then(parsers.cfparse('"{name}" has {count:d} in stock'))
def _(stock, products, name, count):
    assert stock(products[name]) == count


@then(parsers.cfparse('the order is "{status}"'))
def _(outcome, status):
    order_id = outcome["result"].order_id if outcome["result"] else outcome["error"].order_id
    assert current_domain.repository_for(Order).get(order_id).status == status


@then("no order exists")
def _():
    assert current_domain.repository_for(Order)._dao.query.all().items == []
