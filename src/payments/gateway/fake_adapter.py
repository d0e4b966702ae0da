"""Configurable fake payment gateway for development and testing.

Simulates a gateway without any external calls. Behaviour is switched at
runtime: succeed, decline with a reason, raise a transport error, or stall
for a while to exercise timeouts.
"""

import time
from decimal import Decimal
from uuid import uuid4

from payments.gateway.port import ChargeResult, PaymentGateway


class GatewayUnavailable(Exception):
    pass


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.raise_error: bool = False
        self.delay_seconds: float = 0.0
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Card declined",
        raise_error: bool = False,
        delay_seconds: float = 0.0,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.raise_error = raise_error
        self.delay_seconds = delay_seconds

    def charge(self, payment_method_id: str, amount: Decimal, context: dict) -> ChargeResult:
        self.calls.append(
            {
                "method": "charge",
                "payment_method_id": payment_method_id,
                "amount": amount,
                "context": dict(context),
            }
        )

        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        if self.raise_error:
            raise GatewayUnavailable("Gateway connection reset")

        if self.should_succeed:
            return ChargeResult(
                success=True,
                transaction_id=f"fake_txn_{uuid4().hex[:12]}",
                status="succeeded",
            )
        return ChargeResult(
            success=False,
            status="failed",
            failure_reason=self.failure_reason,
        )
