"""Payment gateway port (abstract interface).

Defines the contract every payment processor adapter implements, so the
checkout and reconciliation code can swap FakeGateway (dev/test) for
FlutterwaveGateway (production) without touching domain code.

Adapters report processor problems, transport errors and timeouts
included, by raising ``ProcessorError``.
"""

import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

SUCCESSFUL = "successful"

_REFERENCE_PATTERN = re.compile(r"^order_(.+)_\d+$")


def build_reference(correlation_token: str) -> str:
    """Transaction reference sent to the processor: ``order_<id>_<millis>``."""
    return f"order_{correlation_token}_{time.time_ns() // 1_000_000}"


def token_from_reference(reference: str | None) -> str | None:
    """Recover the order id from a reference made by ``build_reference``."""
    match = _REFERENCE_PATTERN.match(reference or "")
    return match.group(1) if match else None


@dataclass(frozen=True)
class PaymentLink:
    """Hosted payment page issued for one order."""

    url: str
    reference: str


@dataclass(frozen=True)
class TransactionVerification:
    """The processor's own account of a transaction."""

    status: str
    amount: Decimal
    correlation_token: str | None = None
    reference: str | None = None

    @property
    def successful(self) -> bool:
        return self.status == SUCCESSFUL


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_payment_link(
        self,
        amount: Decimal,
        currency: str,
        correlation_token: str,
        customer: dict,
    ) -> PaymentLink:
        """Ask the processor for a payment page for ``amount``."""
        ...

    @abstractmethod
    def verify_transaction(self, reference: str) -> TransactionVerification:
        """Look a transaction up by its reference."""
        ...
