"""Configurable fake payment gateway for development and testing.

No external calls. It can be told to fail link creation, or to report a
given status and amount on verification, which keeps checkout and
reconciliation tests predictable.
"""

from decimal import Decimal

from storefront.errors import ProcessorError
from storefront.gateway.port import (
    SUCCESSFUL,
    PaymentGateway,
    PaymentLink,
    TransactionVerification,
    build_reference,
)


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, base_url: str = "https://checkout.fake-gateway.test") -> None:
        self.base_url = base_url
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment initiation failed"
        self.verification_status: str = SUCCESSFUL
        self.verification_amount: Decimal | None = None
        self.calls: list[dict] = []
        self._links: dict[str, dict] = {}

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Payment initiation failed",
        verification_status: str = SUCCESSFUL,
        verification_amount: Decimal | None = None,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.verification_status = verification_status
        self.verification_amount = verification_amount

    def create_payment_link(
        self,
        amount: Decimal,
        currency: str,
        correlation_token: str,
        customer: dict,
    ) -> PaymentLink:
        self.calls.append(
            {
                "method": "create_payment_link",
                "amount": amount,
                "currency": currency,
                "correlation_token": correlation_token,
                "customer": customer,
            }
        )

        if not self.should_succeed:
            raise ProcessorError(self.failure_reason)

        reference = build_reference(correlation_token)
        self._links[reference] = {"amount": amount, "correlation_token": correlation_token}
        return PaymentLink(url=f"{self.base_url}/pay/{reference}", reference=reference)

    def verify_transaction(self, reference: str) -> TransactionVerification:
        self.calls.append({"method": "verify_transaction", "reference": reference})

        link = self._links.get(reference)
        if link is None:
            raise ProcessorError(f"No transaction found with reference {reference}")

        amount = self.verification_amount if self.verification_amount is not None else link["amount"]
        return TransactionVerification(
            status=self.verification_status,
            amount=amount,
            correlation_token=link["correlation_token"],
            reference=reference,
        )
