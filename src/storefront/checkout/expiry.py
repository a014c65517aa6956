"""Checkout expiry — command and handler.

An order that never got a usable payment link cannot be paid, yet its
items still hold reserved stock. This job returns that stock and marks the
order EXPIRED. Orders with a link are left alone: the customer may still
pay, and a late payment is always honoured.

A payment claimed while the job runs advances the order's version, so the
job's save of that order fails and the whole run rolls back, released
stock included. ``expire_stale_checkouts`` then starts over; the paid
order is no longer stale.
"""

from datetime import UTC, datetime, timedelta

from protean import handle
from protean.exceptions import ExpectedVersionError
from protean.fields import Integer
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.errors import WriteConflict
from storefront.inventory.ledger import InventoryLedger
from storefront.order.order import EXPIRABLE_STATES, Order

MAX_EXPIRY_ATTEMPTS = 3


@storefront.command(part_of="Order")
class ExpireStaleCheckouts:
    older_than_minutes = Integer(required=True, min_value=0)


@storefront.command_handler(part_of=Order)
class ExpireStaleCheckoutsHandler:
    @handle(ExpireStaleCheckouts)
    def expire_stale_checkouts(self, command):
        cutoff = datetime.now(UTC) - timedelta(minutes=command.older_than_minutes)
        repo = current_domain.repository_for(Order)
        ledger = InventoryLedger()

        expired = []
        for stale in repo.find_stale(EXPIRABLE_STATES, cutoff):
            order = repo.get(stale.id)
            for item in order.items:
                ledger.release(str(item.product_id), item.quantity)
            order.expire()
            repo.add(order)
            expired.append(str(order.id))
            logger.info("checkout_expired", order_id=str(order.id), items=len(order.items))

        return expired


def expire_stale_checkouts(older_than_minutes: int) -> list[str]:
    """Process ``ExpireStaleCheckouts``, starting over if a payment lands mid-run."""
    for attempt in range(1, MAX_EXPIRY_ATTEMPTS + 1):
        try:
            return current_domain.process(
                ExpireStaleCheckouts(older_than_minutes=older_than_minutes),
                asynchronous=False,
            )
        except ExpectedVersionError:
            logger.info("checkout_expiry_conflict", attempt=attempt)
    raise WriteConflict(f"Checkout expiry kept conflicting with payments after {MAX_EXPIRY_ATTEMPTS} attempts")
