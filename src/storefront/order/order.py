"""Order aggregate (CQRS) — one checkout attempt and its payment outcome.

State Machine:
    PENDING_PAYMENT_LINK → AWAITING_PAYMENT → PAID
    PENDING_PAYMENT_LINK → PAYMENT_LINK_FAILED
    PENDING_PAYMENT_LINK / PAYMENT_LINK_FAILED → EXPIRED (stock released)

Payment confirmation is authoritative: once the processor reports funds
captured, the order becomes PAID from whatever unpaid state it is in, and
``is_paid`` never goes back to False. The paid transition is written by
``OrderRepository.claim_payment`` as a conditional update so duplicate
webhook deliveries cannot both win it. The confirmation then saves the
order, advancing its version, so any handler still holding the unpaid
order fails its own save and has to reload.
"""

import json
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String

from storefront.domain import storefront
from storefront.order.events import (
    CheckoutExpired,
    OrderPaid,
    OrderPlaced,
    PaymentLinkFailed,
    PaymentLinkIssued,
    StockShortfallDetected,
)
from storefront.shared.money import from_cents


class OrderStatus(Enum):
    PENDING_PAYMENT_LINK = "Pending_Payment_Link"
    PAYMENT_LINK_FAILED = "Payment_Link_Failed"
    AWAITING_PAYMENT = "Awaiting_Payment"
    PAID = "Paid"
    EXPIRED = "Expired"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING_PAYMENT_LINK: {
        OrderStatus.AWAITING_PAYMENT,
        OrderStatus.PAYMENT_LINK_FAILED,
        OrderStatus.EXPIRED,
        OrderStatus.PAID,
    },
    OrderStatus.PAYMENT_LINK_FAILED: {OrderStatus.EXPIRED, OrderStatus.PAID},
    OrderStatus.AWAITING_PAYMENT: {OrderStatus.PAID},
    OrderStatus.EXPIRED: {OrderStatus.PAID},
    OrderStatus.PAID: set(),  # Terminal
}

# Orders in these states never had a usable payment link
EXPIRABLE_STATES = (OrderStatus.PENDING_PAYMENT_LINK, OrderStatus.PAYMENT_LINK_FAILED)


@storefront.entity(part_of="Order")
class OrderItem:
    """A purchased product and quantity, with the unit price locked at checkout."""

    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price_in_cents = Integer(required=True, min_value=0)


@storefront.entity(part_of="Order")
class StockShortfall:
    product_id = Identifier(required=True)
    requested = Integer(required=True)
    available = Integer(required=True)
    recorded_at = DateTime(required=True)


@storefront.aggregate
class Order:
    store_id = Identifier(required=True)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING_PAYMENT_LINK.value,
    )
    is_paid = Boolean(default=False)
    is_sent = Boolean(default=False)
    shipping_details_id = Identifier(required=True, unique=True)
    items = HasMany(OrderItem)
    shortfalls = HasMany(StockShortfall)
    total_in_cents = Integer(default=0)
    currency = String(max_length=3, default="USD")
    payment_reference = String(max_length=255)
    checkout_url = String(max_length=1000)
    address = String(max_length=1000)
    phone = String(max_length=100)
    failure_reason = String(max_length=500)
    paid_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, store_id, shipping_details_id, lines, currency="USD"):
        """Create an order awaiting its payment link.

        ``lines`` is a list of dicts with product_id, quantity and
        unit_price_in_cents.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            store_id=store_id,
            shipping_details_id=shipping_details_id,
            status=OrderStatus.PENDING_PAYMENT_LINK.value,
            is_paid=False,
            is_sent=False,
            currency=currency,
            total_in_cents=sum(line["quantity"] * line["unit_price_in_cents"] for line in lines),
            created_at=now,
            updated_at=now,
        )
        for line in lines:
            order.add_items(
                OrderItem(
                    product_id=line["product_id"],
                    quantity=line["quantity"],
                    unit_price_in_cents=line["unit_price_in_cents"],
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                store_id=str(store_id),
                items=json.dumps(lines),
                total_in_cents=order.total_in_cents,
                currency=currency,
                placed_at=now,
            )
        )
        return order

    @property
    def total(self) -> Decimal:
        return from_cents(self.total_in_cents)

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    # -------------------------------------------------------------------
    # Payment link
    # -------------------------------------------------------------------
    def record_payment_link(self, payment_reference, checkout_url):
        now = datetime.now(UTC)
        self.payment_reference = payment_reference
        self.checkout_url = checkout_url
        self.updated_at = now

        # A fast customer can pay before the link is recorded
        if not self.is_paid:
            self._assert_can_transition(OrderStatus.AWAITING_PAYMENT)
            self.status = OrderStatus.AWAITING_PAYMENT.value

        self.raise_(
            PaymentLinkIssued(
                order_id=str(self.id),
                payment_reference=payment_reference,
                checkout_url=checkout_url,
                issued_at=now,
            )
        )

    def record_payment_link_failure(self, reason):
        self._assert_can_transition(OrderStatus.PAYMENT_LINK_FAILED)
        now = datetime.now(UTC)
        self.status = OrderStatus.PAYMENT_LINK_FAILED.value
        self.failure_reason = reason
        self.updated_at = now

        self.raise_(
            PaymentLinkFailed(
                order_id=str(self.id),
                reason=reason,
                failed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment confirmation
    # -------------------------------------------------------------------
    def record_paid(self):
        """Announce a paid transition already written by ``claim_payment``."""
        if not self.is_paid:
            raise ValidationError({"is_paid": ["Order has not been claimed as paid"]})

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                address=self.address,
                phone=self.phone,
                paid_at=self.paid_at or datetime.now(UTC),
            )
        )

    def record_shortfall(self, product_id, requested, available):
        now = datetime.now(UTC)
        self.add_shortfalls(
            StockShortfall(
                product_id=product_id,
                requested=requested,
                available=available,
                recorded_at=now,
            )
        )
        self.updated_at = now

        self.raise_(
            StockShortfallDetected(
                order_id=str(self.id),
                product_id=str(product_id),
                requested=requested,
                available=available,
                detected_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Expiry
    # -------------------------------------------------------------------
    def expire(self):
        """Give up on an order that never got a usable payment link."""
        previous = OrderStatus(self.status)
        if self.is_paid or previous not in EXPIRABLE_STATES:
            raise ValidationError({"status": [f"Cannot expire an order in {previous.value} state"]})

        now = datetime.now(UTC)
        self.status = OrderStatus.EXPIRED.value
        self.updated_at = now

        self.raise_(
            CheckoutExpired(
                order_id=str(self.id),
                previous_status=previous.value,
                expired_at=now,
            )
        )
