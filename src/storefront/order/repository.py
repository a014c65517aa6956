"""Repository for the Order aggregate."""

from datetime import UTC, datetime

from protean.utils.query import Q

from storefront.domain import storefront
from storefront.order.order import Order, OrderStatus


@storefront.repository(part_of=Order)
class OrderRepository:
    def claim_payment(self, order_id: str, address: str, phone: str) -> bool:
        """Mark the order paid if, and only if, it is not paid yet.

        One conditional update on ``is_paid``: the first confirmation for an
        order gets True, every later (or concurrent) one gets False. The
        caller saves the order in the same unit of work, which advances
        ``_version``; an order loaded before the claim can then no longer be
        saved over the paid row.
        """
        now = datetime.now(UTC)
        updated = self._dao._update_all(
            Q(id=order_id, is_paid=False),
            is_paid=True,
            status=OrderStatus.PAID.value,
            address=address,
            phone=phone,
            paid_at=now,
            updated_at=now,
        )
        return updated > 0

    def exists(self, order_id: str) -> bool:
        return bool(self._dao.query.filter(id=order_id).all().items)

    def find_stale(self, statuses, cutoff: datetime) -> list[Order]:
        """Unpaid orders in one of ``statuses`` created before ``cutoff``."""
        return self._dao.query.filter(
            status__in=[status.value for status in statuses],
            is_paid=False,
            created_at__lt=cutoff,
        ).all().items
