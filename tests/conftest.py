import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config overlay before the domain is first imported."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    from protean import current_domain

    with storefront_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def gateway():
    """A fresh FakeGateway installed as the active gateway for every test."""
    from storefront.gateway import reset_gateway, set_gateway
    from storefront.gateway.fake_adapter import FakeGateway

    fake = FakeGateway()
    set_gateway(fake)
    yield fake
    reset_gateway()


@pytest.fixture()
def config():
    from storefront.config import StorefrontConfig

    return StorefrontConfig(signing_secret="test-signing-secret", currency="USD")


@pytest.fixture()
def store_id():
    from protean import current_domain
    from storefront.store.management import CreateStore

    return current_domain.process(CreateStore(name="Acme", owner_id="owner-001"), asynchronous=False)


@pytest.fixture()
def category_id(store_id):
    return _create_category(store_id)


@pytest.fixture()
def add_product(store_id, category_id):
    """Factory: ``add_product(name="P1", price="10.00", in_stock=5)`` returns the product id."""
    from protean import current_domain
    from storefront.product.management import AddProduct

    def _add(name="P1", price="10.00", in_stock=5, store=None, category=None):
        return current_domain.process(
            AddProduct(
                store_id=store or store_id,
                category_id=category or category_id,
                name=name,
                price=price,
                in_stock=in_stock,
            ),
            asynchronous=False,
        )

    return _add


@pytest.fixture()
def other_store():
    """A second store with its own category: ``(store_id, category_id)``."""
    from protean import current_domain
    from storefront.store.management import CreateStore

    store_id = current_domain.process(CreateStore(name="Other", owner_id="owner-002"), asynchronous=False)
    return store_id, _create_category(store_id)


@pytest.fixture()
def shipping():
    return {
        "address_line1": "12 Market Street",
        "address_line2": "Apt 4",
        "city": "Kigali",
        "state": "Kigali City",
        "zip_code": "00100",
        "country": "RW",
        "phone_number": "+250788000001",
    }


def stock_of(product_id):
    from protean import current_domain
    from storefront.product.product import Product

    return current_domain.repository_for(Product).stock_level(product_id)


@pytest.fixture()
def stock():
    """``stock(product_id)`` reads the stored stock count."""
    return stock_of


def _create_category(store_id):
    from protean import current_domain
    from storefront.store.management import CreateBillboard, CreateCategory

    billboard_id = current_domain.process(
        CreateBillboard(store_id=store_id, label="Summer", image_url="https://cdn.example.com/summer.png"),
        asynchronous=False,
    )
    return current_domain.process(
        CreateCategory(store_id=store_id, billboard_id=billboard_id, name="Shoes"),
        asynchronous=False,
    )
