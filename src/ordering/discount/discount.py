"""Discount aggregate and the immutable redemption record.

A discount belongs to one restaurant and is either a percentage off the
subtotal or a fixed amount. Coupon codes are stored upper-case and matched
case-insensitively. ``current_redemption_count`` only moves forward, inside
the order transaction that consumes the discount.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from ordering.discount.events import DiscountRedeemed
from ordering.domain import ordering
from ordering.pricing.engine import DiscountKind, DiscountTerms


class RedemptionMethod(Enum):
    IN_APP = "in_app"


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@ordering.aggregate
class Discount:
    restaurant_id = Identifier(required=True)
    title = String(max_length=255)
    discount_type = String(choices=DiscountKind, required=True)
    discount_value = Float(required=True, min_value=0.0)
    coupon_code = String(max_length=50)
    minimum_order_amount = Float(min_value=0.0)
    max_redemptions_per_user = Integer(min_value=1)
    total_redemption_limit = Integer(min_value=1)
    current_redemption_count = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    start_date = DateTime(required=True)
    end_date = DateTime(required=True)

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountKind.PERCENTAGE.value and (self.discount_value or 0) > 100:
            raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})

    @invariant.post
    def window_must_be_ordered(self):
        if self.start_date and self.end_date and _aware(self.start_date) > _aware(self.end_date):
            raise ValidationError({"end_date": ["Discount cannot end before it starts"]})

    @invariant.post
    def redemptions_within_total_limit(self):
        if self.total_redemption_limit is not None and (
            (self.current_redemption_count or 0) > self.total_redemption_limit
        ):
            raise ValidationError({"current_redemption_count": ["Redemptions exceed the total limit"]})

    @classmethod
    def create(cls, restaurant_id, discount_type, discount_value, start_date, end_date, coupon_code=None, **attrs):
        return cls(
            restaurant_id=restaurant_id,
            discount_type=DiscountKind(discount_type).value,
            discount_value=discount_value,
            coupon_code=coupon_code.strip().upper() if coupon_code else None,
            start_date=start_date,
            end_date=end_date,
            **attrs,
        )

    @property
    def terms(self) -> DiscountTerms:
        return DiscountTerms.of(self.discount_type, self.discount_value)

    def is_live(self, now: datetime | None = None) -> bool:
        now = _aware(now or datetime.now(UTC))
        return bool(self.is_active) and _aware(self.start_date) <= now <= _aware(self.end_date)

    def record_redemption(self, user_id, order_id, amount, method=RedemptionMethod.IN_APP.value):
        self.current_redemption_count = (self.current_redemption_count or 0) + 1

        self.raise_(
            DiscountRedeemed(
                discount_id=str(self.id),
                user_id=str(user_id),
                order_id=str(order_id),
                discount_amount_applied=float(amount),
                redemption_count=self.current_redemption_count,
                redemption_method=method,
                redeemed_at=datetime.now(UTC),
            )
        )

    def snapshot(self) -> dict:
        """What a cart keeps about an applied discount."""
        return {
            "discount_id": str(self.id),
            "code": self.coupon_code,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
        }


@ordering.aggregate
class DiscountRedemption:
    discount_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    redemption_method = String(choices=RedemptionMethod, default=RedemptionMethod.IN_APP.value)
    discount_amount_applied = Float(required=True, min_value=0.0)
    redeemed_at = DateTime()
