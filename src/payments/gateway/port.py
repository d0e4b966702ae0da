"""Payment gateway port (abstract interface).

The contract checkout relies on to collect money before an order is
written. Adapters must be safe to call from a worker thread because
checkout bounds each call with a timeout.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ChargeResult:
    """Result of a payment charge attempt."""

    success: bool
    transaction_id: str | None = None
    status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def charge(self, payment_method_id: str, amount: Decimal, context: dict) -> ChargeResult:
        """Charge ``amount`` to a stored payment method.

        ``context`` carries correlation data (user, restaurant, currency).
        Transport problems may surface as exceptions.
        """
        ...
