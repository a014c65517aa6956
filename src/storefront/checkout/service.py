"""Checkout entry point.

``place_order`` runs in three steps:

1. Check the request shape. Nothing is opened or written if it is wrong.
2. Process ``PlaceOrder``: stock, shipping details and order commit or roll
   back as one unit of work.
3. Ask the payment processor for a payment link. This happens after the
   commit so no transaction is held open across a network call. The
   outcome is recorded on the order either way, whatever the gateway
   raised.

A ``PaymentLinkFailed`` from here means the order exists and holds stock,
while any other error means no order was created.
"""

import json
from dataclasses import dataclass
from decimal import Decimal

from protean.exceptions import ExpectedVersionError, ValidationError
from protean.utils.globals import current_domain

from storefront.checkout.payment_link import RecordPaymentLink, RecordPaymentLinkFailure
from storefront.checkout.placement import PlaceOrder
from storefront.config import StorefrontConfig
from storefront.domain import logger
from storefront.errors import PaymentLinkFailed, ProcessorError, WriteConflict
from storefront.gateway import PaymentGateway, get_gateway
from storefront.order.shipping import REQUIRED_FIELDS
from storefront.shared.money import from_cents

OPTIONAL_FIELDS = ("address_line2",)
MAX_RECORD_ATTEMPTS = 3


@dataclass(frozen=True)
class CheckoutResult:
    order_id: str
    checkout_url: str
    total: Decimal


def place_order(
    store_id: str,
    items: list[dict],
    shipping: dict | None,
    config: StorefrontConfig | None = None,
    gateway: PaymentGateway | None = None,
) -> CheckoutResult:
    config = config or StorefrontConfig.from_env()
    gateway = gateway or get_gateway()

    cart = validate_items(items)
    shipping_fields = validate_shipping(shipping)

    placed = current_domain.process(
        PlaceOrder(
            store_id=store_id,
            items=json.dumps(cart),
            shipping=json.dumps(shipping_fields),
            currency=config.currency,
        ),
        asynchronous=False,
    )
    order_id = placed["order_id"]
    total = from_cents(placed["total_in_cents"])

    customer = {
        "phone_number": shipping_fields["phone_number"],
        "name": f"{shipping_fields['city']}, {shipping_fields['state']}",
    }
    try:
        link = gateway.create_payment_link(
            amount=total,
            currency=config.currency,
            correlation_token=order_id,
            customer=customer,
        )
    except Exception as exc:
        if isinstance(exc, ProcessorError):
            reason = exc.message
            logger.error("payment_link_failed", order_id=order_id, reason=reason)
        else:
            reason = f"Unexpected gateway error ({type(exc).__name__})"
            logger.exception("payment_link_failed", order_id=order_id, reason=reason)
        _record_outcome(RecordPaymentLinkFailure, order_id=order_id, reason=reason[:500])
        raise PaymentLinkFailed(order_id, reason) from exc

    _record_outcome(
        RecordPaymentLink,
        order_id=order_id,
        payment_reference=link.reference,
        checkout_url=link.url,
    )
    logger.info("checkout_completed", order_id=order_id, total=str(total), reference=link.reference)
    return CheckoutResult(order_id=order_id, checkout_url=link.url, total=total)


def _record_outcome(command_cls, **fields) -> None:
    """Record the payment link outcome, reloading the order if a payment claim got in first."""
    for attempt in range(1, MAX_RECORD_ATTEMPTS + 1):
        try:
            current_domain.process(command_cls(**fields), asynchronous=False)
            return
        except ExpectedVersionError:
            logger.info("payment_link_record_conflict", order_id=fields["order_id"], attempt=attempt)
    raise WriteConflict(f"Could not record the payment link outcome for order {fields['order_id']}")


def validate_items(items) -> list[dict]:
    """Normalise cart lines to ``{product_id, quantity}``; raise ``ValidationError`` if unusable."""
    if not items:
        raise ValidationError({"products": ["Products are required"]})

    errors = {}
    cart = []
    for index, item in enumerate(items):
        product_id = item.get("product_id") if isinstance(item, dict) else None
        quantity = item.get("quantity") if isinstance(item, dict) else None
        if not product_id:
            errors[f"products[{index}].product_id"] = ["is required"]
        # bool is an int subclass
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            errors[f"products[{index}].quantity"] = ["must be a positive integer"]
        cart.append({"product_id": str(product_id), "quantity": quantity})

    if errors:
        raise ValidationError(errors)
    return cart


def validate_shipping(shipping) -> dict:
    if not shipping:
        raise ValidationError({"shipping_details": ["Shipping details are required"]})

    fields = {}
    errors = {}
    for name in REQUIRED_FIELDS:
        value = str(shipping.get(name) or "").strip()
        if not value:
            errors[name] = ["is required"]
        fields[name] = value
    for name in OPTIONAL_FIELDS:
        value = str(shipping.get(name) or "").strip()
        if value:
            fields[name] = value

    if errors:
        raise ValidationError(errors)
    return fields
