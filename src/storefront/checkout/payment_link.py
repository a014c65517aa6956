"""Payment link outcome — commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import OrderNotFound
from storefront.order.order import Order


@storefront.command(part_of="Order")
class RecordPaymentLink:
    order_id = Identifier(required=True)
    payment_reference = String(required=True, max_length=255)
    checkout_url = String(required=True, max_length=1000)


@storefront.command(part_of="Order")
class RecordPaymentLinkFailure:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@storefront.command_handler(part_of=Order)
class PaymentLinkHandler:
    @handle(RecordPaymentLink)
    def record_payment_link(self, command):
        repo = current_domain.repository_for(Order)
        order = _load(repo, command.order_id)
        order.record_payment_link(
            payment_reference=command.payment_reference,
            checkout_url=command.checkout_url,
        )
        repo.add(order)

    @handle(RecordPaymentLinkFailure)
    def record_payment_link_failure(self, command):
        repo = current_domain.repository_for(Order)
        order = _load(repo, command.order_id)
        if order.is_paid:
            return
        order.record_payment_link_failure(reason=command.reason)
        repo.add(order)


def _load(repo, order_id):
    try:
        return repo.get(order_id)
    except ObjectNotFoundError:
        raise OrderNotFound(str(order_id)) from None
