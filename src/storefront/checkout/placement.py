"""Order placement — command and handler.

Everything that must commit or roll back together: stock reservations,
the shipping details record and the order with its items. The cart is
checked in full before the first write, so a cart that fails validation
leaves no trace even on providers without real transactions.
"""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.errors import InsufficientStock, ProductNotFound
from storefront.inventory.ledger import InventoryLedger
from storefront.order.order import Order
from storefront.order.shipping import ShippingDetails
from storefront.product.product import Product
from storefront.store.management import get_store


@storefront.command(part_of="Order")
class PlaceOrder:
    store_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity}
    shipping = Text(required=True)  # JSON: shipping details fields
    currency = String(max_length=3, default="USD")


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        store_id = str(command.store_id)
        items = json.loads(command.items)
        shipping_fields = json.loads(command.shipping)

        get_store(store_id)

        # Quantities per product, first-seen order, duplicates combined
        requested = {}
        for item in items:
            product_id = str(item["product_id"])
            requested[product_id] = requested.get(product_id, 0) + item["quantity"]

        product_repo = current_domain.repository_for(Product)
        products = {product_id: _load_for_store(product_repo, product_id, store_id) for product_id in requested}

        ledger = InventoryLedger(product_repo)
        for product_id, quantity in requested.items():
            available = ledger.available(product_id)
            if available < quantity:
                raise InsufficientStock(product_id, quantity, available, name=products[product_id].name)

        lines = [
            {
                "product_id": str(item["product_id"]),
                "quantity": item["quantity"],
                "unit_price_in_cents": products[str(item["product_id"])].price_in_cents,
            }
            for item in items
        ]

        for product_id, quantity in requested.items():
            try:
                ledger.reserve(product_id, quantity)
            except InsufficientStock as exc:
                raise InsufficientStock(
                    product_id, quantity, exc.available, name=products[product_id].name
                ) from None

        shipping = ShippingDetails.create(**shipping_fields)
        current_domain.repository_for(ShippingDetails).add(shipping)

        order = Order.create(
            store_id=store_id,
            shipping_details_id=shipping.id,
            lines=lines,
            currency=command.currency or "USD",
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            store_id=store_id,
            items=len(lines),
            total_in_cents=order.total_in_cents,
        )
        return {"order_id": str(order.id), "total_in_cents": order.total_in_cents}


def _load_for_store(repo, product_id, store_id):
    """A product of another store is reported exactly like a missing one."""
    try:
        product = repo.get(product_id)
    except ObjectNotFoundError:
        raise ProductNotFound(product_id) from None
    if str(product.store_id) != store_id:
        raise ProductNotFound(product_id)
    return product
