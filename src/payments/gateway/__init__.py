"""Payment gateway registry used by checkout.

Checkout resolves the gateway on every request, possibly from several
threads at once, so the lazy default is created under a lock. Nothing
talks to a real processor yet; ``FakeGateway`` is installed unless a
caller provides its own adapter.
"""

import threading

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import ChargeResult, PaymentGateway

__all__ = ["ChargeResult", "PaymentGateway", "get_gateway", "set_gateway", "reset_gateway"]

_lock = threading.Lock()
_active: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    global _active
    with _lock:
        if _active is None:
            _active = FakeGateway()
        return _active


def set_gateway(gateway: PaymentGateway) -> None:
    global _active
    with _lock:
        _active = gateway


def reset_gateway() -> None:
    """Drop the installed adapter; the next lookup builds a fresh fake."""
    global _active
    with _lock:
        _active = None
