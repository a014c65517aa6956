"""Store, Billboard and Category aggregates (CQRS).

A store is the tenant every other record hangs off. Billboards are the
banners a storefront shows; categories group products and point at one
billboard. References between them are plain identifiers checked by the
command handlers.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.aggregate
class Store:
    name = String(required=True, max_length=100)
    owner_id = Identifier(required=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, name, owner_id):
        if not name or not name.strip():
            raise ValidationError({"name": ["Store name is required"]})
        now = datetime.now(UTC)
        return cls(name=name.strip(), owner_id=owner_id, created_at=now, updated_at=now)


@storefront.aggregate
class Billboard:
    store_id = Identifier(required=True)
    label = String(required=True, max_length=255)
    image_url = String(required=True, max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, store_id, label, image_url):
        now = datetime.now(UTC)
        return cls(
            store_id=store_id,
            label=label,
            image_url=image_url,
            created_at=now,
            updated_at=now,
        )


@storefront.aggregate
class Category:
    store_id = Identifier(required=True)
    billboard_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, store_id, billboard_id, name):
        now = datetime.now(UTC)
        return cls(
            store_id=store_id,
            billboard_id=billboard_id,
            name=name,
            created_at=now,
            updated_at=now,
        )
