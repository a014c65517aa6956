"""Pydantic request/response schemas for the checkout API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands. The storefront client sends camelCase; the
snake_case names are accepted too.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartLineSchema(CamelModel):
    product_id: str
    quantity: int


class ShippingDetailsSchema(CamelModel):
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None
    phone_number: str | None = None


class CheckoutRequest(CamelModel):
    products: list[CartLineSchema] = []
    shipping_details: ShippingDetailsSchema | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "products": [{"productId": "prod-001", "quantity": 2}],
                    "shippingDetails": {
                        "addressLine1": "12 Market Street",
                        "city": "Kigali",
                        "state": "Kigali City",
                        "zipCode": "00000",
                        "country": "RW",
                        "phoneNumber": "+250788000000",
                    },
                }
            ]
        },
    )


class CheckoutResponse(BaseModel):
    url: str
