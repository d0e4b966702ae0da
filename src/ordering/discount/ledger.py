"""Discount redemption ledger.

Validation and recording of discount use. Per-user counts always come from
the redemption records themselves. Callers serialize on
``discount_lock_key(discount_id)`` so that counting and incrementing happen
as one step under concurrent checkouts.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.discount.discount import Discount, DiscountRedemption, RedemptionMethod
from ordering.errors import DiscountInactive, InvalidCoupon, MinimumNotMet, RedemptionLimitReached
from ordering.pricing.engine import to_money
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


def discount_lock_key(discount_id) -> str:
    return f"discount:{discount_id}"


def find_coupon(restaurant_id, code: str, now: datetime | None = None) -> Discount:
    """Live coupon for a restaurant by code, or ``InvalidCoupon``."""
    if not code or not code.strip():
        raise InvalidCoupon("Coupon code is required")

    matches = (
        current_domain.repository_for(Discount)
        ._dao.query.filter(coupon_code=code.strip().upper(), restaurant_id=str(restaurant_id))
        .all()
        .items
    )
    live = [d for d in matches if d.is_live(now)]
    if not live:
        raise InvalidCoupon()
    return live[0]


class RedemptionLedger:
    def redemption_count(self, discount_id, user_id) -> int:
        return (
            current_domain.repository_for(DiscountRedemption)
            ._dao.query.filter(discount_id=str(discount_id), user_id=str(user_id))
            .all()
            .total
        )

    def load(self, discount_id) -> Discount:
        try:
            return current_domain.repository_for(Discount).get(discount_id)
        except ObjectNotFoundError as exc:
            raise DiscountInactive("Discount no longer exists") from exc

    def validate(self, discount: Discount, subtotal, user_id, now: datetime | None = None) -> None:
        """Raise the first failing rule; return ``None`` when the discount may be used.

        Order of checks: active window, discount minimum, per-user cap,
        global cap.
        """
        if not discount.is_live(now):
            raise DiscountInactive()

        if discount.minimum_order_amount is not None and to_money(subtotal) < to_money(discount.minimum_order_amount):
            raise MinimumNotMet(
                f"Minimum order amount of ${to_money(discount.minimum_order_amount)} required for this discount",
                minimum_order_amount=float(to_money(discount.minimum_order_amount)),
            )

        if discount.max_redemptions_per_user is not None:
            used = self.redemption_count(discount.id, user_id)
            if used >= discount.max_redemptions_per_user:
                raise RedemptionLimitReached("You have already used this discount the maximum number of times")

        if discount.total_redemption_limit is not None and (
            (discount.current_redemption_count or 0) >= discount.total_redemption_limit
        ):
            raise RedemptionLimitReached("This discount has been fully redeemed")

    def redeem(self, discount_id, user_id, order_id, amount, method=RedemptionMethod.IN_APP.value):
        """Record one redemption and bump the discount counter.

        Must run inside the order's unit of work so both writes commit or
        roll back with the order.
        """
        repo = current_domain.repository_for(Discount)
        discount = repo.get(discount_id)
        discount.record_redemption(user_id=user_id, order_id=order_id, amount=amount, method=method)
        repo.add(discount)

        redemption = DiscountRedemption(
            discount_id=str(discount_id),
            user_id=str(user_id),
            order_id=str(order_id),
            redemption_method=method,
            discount_amount_applied=float(to_money(amount)),
            redeemed_at=datetime.now(UTC),
        )
        current_domain.repository_for(DiscountRedemption).add(redemption)

        logger.info(
            "discount_redeemed",
            discount_id=str(discount_id),
            user_id=str(user_id),
            order_id=str(order_id),
            redemption_count=discount.current_redemption_count,
        )
        return redemption
