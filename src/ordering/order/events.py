"""Domain events for the Order aggregate.

Raised by the aggregate and stored with it when the repository persists the
order. Versioned so consumers can evolve independently.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A paid order was persisted from a user's cart."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    restaurant_id = Identifier(required=True)
    order_type = String(required=True)
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    discount_amount = Float()
    delivery_fee = Float()
    tax = Float()
    tip = Float()
    grand_total = Float(required=True)
    discount_id = Identifier()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusAdvanced:
    """The restaurant moved the order one step along its lifecycle."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String(required=True)
    grand_total = Float()
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderDetailsUpdated:
    """Tip or special instructions changed before delivery."""

    __version__ = 1

    order_id = Identifier(required=True)
    tip = Float()
    grand_total = Float()
    special_instructions = String(max_length=1000)
    updated_at = DateTime(required=True)
