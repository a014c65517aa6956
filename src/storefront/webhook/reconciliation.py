"""Payment reconciliation — turns processor notifications into paid orders.

A notification is only trusted after its HMAC signature checks out against
the raw body. Only completed, successful charges change anything; every
other event is acknowledged and ignored. The order is found through the
correlation token carried in the charge metadata, or failing that, through
the ``order_<id>_<timestamp>`` transaction reference.

The reconciler is safe to call any number of times for the same charge:
``ConfirmOrderPayment`` wins the paid transition once and answers
``already_paid`` afterwards.
"""

import json
from dataclasses import dataclass, field

from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.config import StorefrontConfig
from storefront.domain import logger
from storefront.errors import (
    InvalidPayload,
    InvalidSignature,
    OrderNotFound,
    PaymentAmountMismatch,
    ProcessorError,
    WriteConflict,
)
from storefront.gateway import PaymentGateway, get_gateway
from storefront.gateway.port import SUCCESSFUL, token_from_reference
from storefront.order.confirmation import ConfirmOrderPayment
from storefront.order.order import Order
from storefront.order.shipping import ShippingDetails
from storefront.shared.money import to_cents
from storefront.webhook.signature import verify_signature

CHARGE_COMPLETED = "charge.completed"
IGNORED = "ignored"
MAX_CONFIRM_ATTEMPTS = 3

# Notification shipping keys, in address order, with accepted aliases
_ADDRESS_KEYS = (
    ("address_line1", "line1"),
    ("address_line2", "line2"),
    ("city",),
    ("state",),
    ("zip_code", "postal_code"),
    ("country",),
)


@dataclass(frozen=True)
class Ack:
    """What the processor is told after a notification is handled."""

    status: str
    order_id: str | None = None
    shortfalls: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"status": self.status, "order_id": self.order_id, "shortfalls": self.shortfalls}


class PaymentReconciler:
    def __init__(self, config: StorefrontConfig, gateway: PaymentGateway | None = None) -> None:
        self.config = config
        self._gateway = gateway

    @property
    def gateway(self) -> PaymentGateway:
        return self._gateway or get_gateway()

    def handle_notification(self, raw_body: bytes, signature: str | None) -> Ack:
        if not verify_signature(raw_body, signature, self.config.signing_secret):
            logger.warning("webhook_signature_invalid", body_size=len(raw_body), signature_present=bool(signature))
            raise InvalidSignature()

        try:
            payload = json.loads(raw_body)
        except (UnicodeDecodeError, ValueError):
            raise InvalidPayload("Webhook body is not valid JSON") from None
        if not isinstance(payload, dict):
            raise InvalidPayload("Webhook body must be a JSON object")

        event = payload.get("event")
        data = payload.get("data")
        if not isinstance(data, dict):
            data = {}

        if event != CHARGE_COMPLETED:
            logger.info("webhook_ignored", webhook_event=event)
            return Ack(status=IGNORED)
        if data.get("status") != SUCCESSFUL:
            logger.info("webhook_ignored", webhook_event=event, charge_status=data.get("status"))
            return Ack(status=IGNORED)

        order_id = _correlation_token(data)
        if not order_id:
            raise InvalidPayload("Notification carries no order reference")

        order = _load_order(order_id)
        if data.get("amount") is None:
            logger.warning("webhook_amount_missing", order_id=order_id, reference=data.get("tx_ref"))
        else:
            _check_amount(order, data["amount"], reference=data.get("tx_ref"))

        address, phone = _confirmed_contact(data.get("shipping"), order)
        return self._confirm(order_id, address, phone)

    def verify(self, reference: str) -> Ack:
        """Ask the processor about ``reference`` and apply it if it was paid."""
        verification = self.gateway.verify_transaction(reference)
        if not verification.successful:
            raise ProcessorError(f"Transaction {reference} is {verification.status or 'unknown'}")

        order_id = verification.correlation_token or token_from_reference(reference)
        if not order_id:
            raise InvalidPayload(f"Transaction {reference} carries no order reference")

        order = _load_order(order_id)
        _check_amount(order, verification.amount, reference=reference)

        address, phone = _confirmed_contact(None, order)
        return self._confirm(order_id, address, phone)

    def _confirm(self, order_id: str, address: str, phone: str) -> Ack:
        # A payment link or expiry write that lands first makes the save stale
        for attempt in range(1, MAX_CONFIRM_ATTEMPTS + 1):
            try:
                result = current_domain.process(
                    ConfirmOrderPayment(order_id=order_id, address=address, phone=phone),
                    asynchronous=False,
                )
                break
            except ExpectedVersionError:
                logger.info("payment_confirmation_conflict", order_id=order_id, attempt=attempt)
        else:
            raise WriteConflict(f"Could not confirm payment for order {order_id}")
        return Ack(status=result["status"], order_id=result["order_id"], shortfalls=result["shortfalls"])


def _correlation_token(data: dict) -> str | None:
    for key in ("meta", "meta_data"):
        meta = data.get(key)
        if isinstance(meta, dict) and meta.get("order_id"):
            return str(meta["order_id"])
    return token_from_reference(data.get("tx_ref"))


def _check_amount(order: Order, amount, reference: str | None) -> None:
    """Reject a charge that covers less than the order total."""
    try:
        paid_cents = to_cents(amount)
    except (ArithmeticError, ValueError):
        raise InvalidPayload(f"Charge amount {amount!r} is not a number") from None
    if paid_cents < order.total_in_cents:
        logger.error(
            "payment_amount_short",
            order_id=str(order.id),
            reference=reference,
            paid=str(amount),
            total=str(order.total),
        )
        raise PaymentAmountMismatch(str(order.id), paid=amount, total=order.total)


def _load_order(order_id: str) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        logger.warning("webhook_order_not_found", order_id=order_id)
        raise OrderNotFound(order_id) from None


def _confirmed_contact(shipping: dict | None, order: Order) -> tuple[str, str]:
    """Address string and phone, from the notification if it has them."""
    if isinstance(shipping, dict) and shipping:
        parts = []
        for aliases in _ADDRESS_KEYS:
            value = next((shipping[key] for key in aliases if shipping.get(key)), None)
            if value:
                parts.append(str(value))
        phone = shipping.get("phone_number") or shipping.get("phone") or ""
        if parts:
            return ", ".join(parts), str(phone)

    try:
        details = current_domain.repository_for(ShippingDetails).get(order.shipping_details_id)
    except ObjectNotFoundError:
        return "", ""
    return details.address_string(), details.phone_number
