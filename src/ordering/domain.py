"""Ordering bounded context: carts, pricing, discounts and orders.

Turns a per-user cart into a priced, paid and persisted order, and drives
the order through its fulfilment lifecycle afterwards.
"""

from protean.domain import Domain

ordering = Domain(name="ordering")
