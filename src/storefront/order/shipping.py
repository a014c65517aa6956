"""ShippingDetails aggregate (CQRS).

Recorded once, in the same unit of work as its order, and never changed
afterwards. The order points at it through ``Order.shipping_details_id``.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, String

from storefront.domain import storefront

REQUIRED_FIELDS = ("address_line1", "city", "state", "zip_code", "country", "phone_number")


@storefront.aggregate
class ShippingDetails:
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone_number = String(required=True, max_length=30)
    created_at = DateTime()

    @classmethod
    def create(cls, **details):
        return cls(
            address_line1=details["address_line1"],
            address_line2=details.get("address_line2"),
            city=details["city"],
            state=details["state"],
            zip_code=details["zip_code"],
            country=details["country"],
            phone_number=details["phone_number"],
            created_at=datetime.now(UTC),
        )

    def address_string(self) -> str:
        parts = [
            self.address_line1,
            self.address_line2,
            self.city,
            self.state,
            self.zip_code,
            self.country,
        ]
        return ", ".join(p for p in parts if p)
