"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """Stock was reserved and the order recorded, awaiting a payment link."""

    __version__ = 1

    order_id = Identifier(required=True)
    store_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity, unit_price_in_cents}
    total_in_cents = Integer(required=True)
    currency = String(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentLinkIssued:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_reference = String(required=True)
    checkout_url = String(required=True)
    issued_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentLinkFailed:
    """The processor refused or never answered; reserved stock is still held."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True)
    failed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    address = String()
    phone = String()
    paid_at = DateTime(required=True)


@storefront.event(part_of="Order")
class StockShortfallDetected:
    """A paid item could not be deducted from stock. Needs an operator."""

    __version__ = 1

    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    requested = Integer(required=True)
    available = Integer(required=True)
    detected_at = DateTime(required=True)


@storefront.event(part_of="Order")
class CheckoutExpired:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    expired_at = DateTime(required=True)
