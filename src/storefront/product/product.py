"""Product aggregate root with its Image entity.

Prices are held in integer cents. ``in_stock`` is the sellable count; it is
decremented when a checkout reserves units and again when payment is
confirmed, and restored only by the checkout expiry job. Stock changes made
during checkout and reconciliation go through ``InventoryLedger``, which
writes them as conditional updates; the aggregate methods below are for
catalogue maintenance.
"""

from datetime import UTC, datetime
from decimal import Decimal

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String

from storefront.domain import storefront
from storefront.shared.money import from_cents, to_cents


@storefront.entity(part_of="Product")
class Image:
    url = String(required=True, max_length=500)
    created_at = DateTime()


@storefront.aggregate
class Product:
    store_id = Identifier(required=True)
    category_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price_in_cents = Integer(required=True, min_value=0)
    in_stock = Integer(default=0)
    is_featured = Boolean(default=False)
    is_archived = Boolean(default=False)
    images = HasMany(Image)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def stock_cannot_be_negative(self):
        if self.in_stock is not None and self.in_stock < 0:
            raise ValidationError({"in_stock": ["Stock cannot be negative"]})

    @classmethod
    def create(
        cls,
        store_id,
        category_id,
        name,
        price: Decimal | str,
        in_stock=0,
        is_featured=False,
        image_urls=None,
    ):
        now = datetime.now(UTC)
        product = cls(
            store_id=store_id,
            category_id=category_id,
            name=name,
            price_in_cents=to_cents(price),
            in_stock=in_stock,
            is_featured=is_featured,
            is_archived=False,
            created_at=now,
            updated_at=now,
        )
        for url in image_urls or []:
            product.add_images(Image(url=url, created_at=now))
        return product

    @property
    def price(self) -> Decimal:
        return from_cents(self.price_in_cents)

    def restock(self, quantity):
        """Add units received from a supplier."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        self.in_stock += quantity
        self.updated_at = datetime.now(UTC)
