"""Payment confirmation — command and handler.

Applies a captured payment to its order exactly once. The paid flag is
claimed with a conditional update; only the winner of that claim deducts
stock. Missing stock never reverts a payment: each shortfall is recorded
on the order, raised as an event and logged for an operator.
"""

from dataclasses import asdict

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.errors import OrderNotFound
from storefront.inventory.ledger import InventoryLedger
from storefront.order.order import Order

PROCESSED = "processed"
ALREADY_PAID = "already_paid"


@storefront.command(part_of="Order")
class ConfirmOrderPayment:
    order_id = Identifier(required=True)
    address = String(max_length=1000)
    phone = String(max_length=100)


@storefront.command_handler(part_of=Order)
class ConfirmOrderPaymentHandler:
    @handle(ConfirmOrderPayment)
    def confirm_order_payment(self, command):
        order_id = str(command.order_id)
        repo = current_domain.repository_for(Order)

        if not repo.claim_payment(order_id, address=command.address or "", phone=command.phone or ""):
            if not repo.exists(order_id):
                raise OrderNotFound(order_id)
            logger.info("order_already_paid", order_id=order_id)
            return {"status": ALREADY_PAID, "order_id": order_id, "shortfalls": []}

        order = repo.get(order_id)
        order.record_paid()

        ledger = InventoryLedger()
        shortfalls = []
        for item in order.items:
            shortfall = ledger.deduct(str(item.product_id), item.quantity)
            if shortfall is None:
                continue
            order.record_shortfall(shortfall.product_id, shortfall.requested, shortfall.available)
            logger.error(
                "stock_shortfall_detected",
                order_id=order_id,
                product_id=shortfall.product_id,
                requested=shortfall.requested,
                available=shortfall.available,
            )
            shortfalls.append(asdict(shortfall))

        repo.add(order)
        logger.info("order_paid", order_id=order_id, shortfalls=len(shortfalls))
        return {"status": PROCESSED, "order_id": order_id, "shortfalls": shortfalls}
