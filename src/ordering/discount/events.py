"""Domain events for discounts."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Discount")
class DiscountRedeemed:
    """A discount was consumed by a placed order."""

    __version__ = 1

    discount_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    discount_amount_applied = Float(required=True)
    redemption_count = Integer(required=True)
    redemption_method = String(max_length=20)
    redeemed_at = DateTime(required=True)
