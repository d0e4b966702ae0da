"""Pricing engine: pure money arithmetic for carts and orders.

    subtotal        = sum of line totals
    discount_amount = clamp(percentage or fixed value, 0, subtotal)
    delivery_fee    = restaurant fee (0 for pickup)
    tax             = (subtotal - discount_amount + delivery_fee) * tax_rate
    grand_total     = subtotal - discount_amount + delivery_fee + tax + tip

Every figure is a ``Decimal`` rounded half-up to cents where it is computed.
Tip is never taxed. Nothing here performs I/O.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Optional

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")
DEFAULT_TAX_RATE = Decimal("0.085")


class DiscountKind(Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


def to_money(value) -> Decimal:
    """Coerce ints, floats, strings or Decimals to a cent-rounded Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def line_item_total(base_price, quantity: int, size_delta=None, addon_prices=(), modification_prices=()) -> Decimal:
    if quantity < 1:
        raise ValueError("quantity must be at least 1")
    unit = Decimal(str(base_price)) + Decimal(str(size_delta or 0))
    unit += sum((Decimal(str(p)) for p in addon_prices), Decimal(0))
    unit += sum((Decimal(str(p)) for p in modification_prices), Decimal(0))
    return to_money(unit * quantity)


@dataclass(frozen=True)
class DiscountTerms:
    """The part of a discount the arithmetic needs: its kind and value."""

    kind: DiscountKind
    value: Decimal

    @classmethod
    def of(cls, kind, value) -> "DiscountTerms":
        return cls(kind=DiscountKind(kind), value=Decimal(str(value)))


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    discount_amount: Decimal
    delivery_fee: Decimal
    tax: Decimal
    tip: Decimal
    grand_total: Decimal

    def as_floats(self) -> dict:
        return {
            "subtotal": float(self.subtotal),
            "discount_amount": float(self.discount_amount),
            "delivery_fee": float(self.delivery_fee),
            "tax": float(self.tax),
            "tip": float(self.tip),
            "grand_total": float(self.grand_total),
        }


def discount_amount(subtotal: Decimal, discount: Optional[DiscountTerms]) -> Decimal:
    if discount is None:
        return ZERO
    if discount.kind is DiscountKind.PERCENTAGE:
        raw = subtotal * discount.value / Decimal(100)
    else:
        raw = discount.value
    return to_money(min(max(raw, ZERO), subtotal))


def price(
    line_totals: Iterable,
    delivery_fee=ZERO,
    discount: Optional[DiscountTerms] = None,
    tip: Optional[Decimal] = None,
    tax_rate: Decimal = DEFAULT_TAX_RATE,
    pickup: bool = False,
) -> PriceBreakdown:
    """Price a set of line totals against a fee schedule.

    ``discount`` and ``tip`` are optional; ``None`` means no discount and a
    zero tip. Pickup orders never carry a delivery fee.
    """
    subtotal = to_money(sum((Decimal(str(t)) for t in line_totals), Decimal(0)))
    discount_value = discount_amount(subtotal, discount)
    fee = ZERO if pickup else to_money(delivery_fee)
    tip_value = to_money(tip) if tip is not None else ZERO
    if tip_value < ZERO:
        raise ValueError("tip cannot be negative")

    tax = to_money((subtotal - discount_value + fee) * Decimal(str(tax_rate)))
    grand_total = to_money(subtotal - discount_value + fee + tax + tip_value)

    return PriceBreakdown(
        subtotal=subtotal,
        discount_amount=discount_value,
        delivery_fee=fee,
        tax=tax,
        tip=tip_value,
        grand_total=grand_total,
    )


def recompute_grand_total(subtotal, discount_amount_value, delivery_fee, tax, tip) -> Decimal:
    """Grand total from already-rounded components, used when only the tip changes."""
    return to_money(
        to_money(subtotal) - to_money(discount_amount_value) + to_money(delivery_fee) + to_money(tax) + to_money(tip)
    )
