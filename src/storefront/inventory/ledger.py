"""Inventory ledger — every stock mutation made by checkout and reconciliation.

Each change is a compare-and-swap on ``Product.in_stock``: read the count,
check it, then write the new value only if the stored count is still the
one that was read. A writer that loses a race sees zero affected rows,
re-reads and re-checks, so the count can never be driven below zero. The
ledger must be used inside a unit of work; it opens none of its own.
"""

from dataclasses import dataclass

from protean.utils.globals import current_domain

from storefront.domain import logger
from storefront.errors import InsufficientStock, ProductNotFound, WriteConflict
from storefront.product.product import Product

MAX_WRITE_ATTEMPTS = 5


@dataclass(frozen=True)
class Shortfall:
    """Units that could not be deducted at payment confirmation."""

    product_id: str
    requested: int
    available: int


class InventoryLedger:
    def __init__(self, repository=None) -> None:
        self._repo = repository or current_domain.repository_for(Product)

    def available(self, product_id: str) -> int:
        stock = self._repo.stock_level(product_id)
        if stock is None:
            raise ProductNotFound(product_id)
        return stock

    def reserve(self, product_id: str, quantity: int) -> int:
        """Take ``quantity`` units out of stock for a checkout.

        Returns the new stock count. Raises ``InsufficientStock`` when the
        units are not there, including when every write attempt lost a race.
        """
        _check_quantity(quantity)
        stock = self.available(product_id)
        for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
            if stock < quantity:
                raise InsufficientStock(product_id, requested=quantity, available=stock)
            if self._repo.compare_and_set_stock(product_id, stock, stock - quantity):
                logger.debug("stock_reserved", product_id=product_id, quantity=quantity, remaining=stock - quantity)
                return stock - quantity
            logger.info("stock_write_conflict", product_id=product_id, attempt=attempt)
            stock = self.available(product_id)
        raise InsufficientStock(product_id, requested=quantity, available=stock)

    def deduct(self, product_id: str, quantity: int) -> Shortfall | None:
        """Deduct units for a paid order item.

        Never raises for missing stock: payment is already captured, so a
        shortfall is returned for the caller to record and alert on.
        """
        try:
            self.reserve(product_id, quantity)
        except InsufficientStock as exc:
            return Shortfall(product_id=product_id, requested=quantity, available=exc.available)
        except ProductNotFound:
            return Shortfall(product_id=product_id, requested=quantity, available=0)
        return None

    def release(self, product_id: str, quantity: int) -> int:
        """Put ``quantity`` units back into stock. Returns the new count."""
        _check_quantity(quantity)
        for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
            stock = self.available(product_id)
            if self._repo.compare_and_set_stock(product_id, stock, stock + quantity):
                logger.debug("stock_released", product_id=product_id, quantity=quantity, remaining=stock + quantity)
                return stock + quantity
            logger.info("stock_write_conflict", product_id=product_id, attempt=attempt)
        raise WriteConflict(f"Could not release {quantity} units of {product_id} after {MAX_WRITE_ATTEMPTS} attempts")


def _check_quantity(quantity: int) -> None:
    if quantity is None or quantity <= 0:
        raise ValueError(f"Quantity must be a positive integer, got {quantity!r}")
