"""Shopping cart: ephemeral per-user state that becomes an Order at checkout.

The cart is not a persisted aggregate. It lives in a ``CartStore`` keyed by
user and serializes to plain dicts. All lines share the cart's
``restaurant_id``; names and prices are snapshotted when a line is added.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from ordering.pricing.engine import ZERO, DiscountTerms, line_item_total, to_money


@dataclass
class PricedOption:
    """A named add-on or modification with its unit price."""

    name: str
    price: Decimal = ZERO

    def to_dict(self) -> dict:
        return {"name": self.name, "price": float(self.price)}

    @classmethod
    def from_dict(cls, data: dict) -> "PricedOption":
        return cls(name=data["name"], price=to_money(data.get("price", 0)))


@dataclass
class CartLineItem:
    menu_item_id: str
    item_name: str
    base_price: Decimal
    quantity: int = 1
    size: Optional[str] = None
    size_price_delta: Decimal = ZERO
    addons: list[PricedOption] = field(default_factory=list)
    modifications: list[PricedOption] = field(default_factory=list)
    special_instructions: Optional[str] = None
    line_id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def item_total_price(self) -> Decimal:
        return line_item_total(
            self.base_price,
            self.quantity,
            size_delta=self.size_price_delta,
            addon_prices=[a.price for a in self.addons],
            modification_prices=[m.price for m in self.modifications],
        )

    def matches(self, item_ref) -> bool:
        return str(item_ref) in (self.line_id, self.menu_item_id)

    def to_dict(self) -> dict:
        return {
            "line_id": self.line_id,
            "menu_item_id": self.menu_item_id,
            "item_name": self.item_name,
            "base_price": float(self.base_price),
            "quantity": self.quantity,
            "size": self.size,
            "size_price_delta": float(self.size_price_delta),
            "addons": [a.to_dict() for a in self.addons],
            "modifications": [m.to_dict() for m in self.modifications],
            "special_instructions": self.special_instructions,
            "item_total_price": float(self.item_total_price),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartLineItem":
        return cls(
            line_id=data["line_id"],
            menu_item_id=data["menu_item_id"],
            item_name=data["item_name"],
            base_price=to_money(data["base_price"]),
            quantity=int(data["quantity"]),
            size=data.get("size"),
            size_price_delta=to_money(data.get("size_price_delta", 0)),
            addons=[PricedOption.from_dict(a) for a in data.get("addons", [])],
            modifications=[PricedOption.from_dict(m) for m in data.get("modifications", [])],
            special_instructions=data.get("special_instructions"),
        )


@dataclass
class AppliedDiscount:
    discount_id: str
    code: Optional[str]
    discount_type: str
    discount_value: Decimal

    @property
    def terms(self) -> DiscountTerms:
        return DiscountTerms.of(self.discount_type, self.discount_value)

    def to_dict(self) -> dict:
        return {
            "discount_id": self.discount_id,
            "code": self.code,
            "discount_type": self.discount_type,
            "discount_value": float(self.discount_value),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppliedDiscount":
        return cls(
            discount_id=data["discount_id"],
            code=data.get("code"),
            discount_type=data["discount_type"],
            discount_value=Decimal(str(data["discount_value"])),
        )


@dataclass
class Cart:
    restaurant_id: Optional[str] = None
    items: list[CartLineItem] = field(default_factory=list)
    applied_discount: Optional[AppliedDiscount] = None
    tip: Decimal = ZERO

    @property
    def is_empty(self) -> bool:
        return not self.items

    def line_totals(self) -> list[Decimal]:
        return [item.item_total_price for item in self.items]

    def find(self, item_ref) -> Optional[CartLineItem]:
        return next((item for item in self.items if item.matches(item_ref)), None)

    def add(self, restaurant_id, line: CartLineItem) -> bool:
        """Append a line; returns True when the cart was reset for another restaurant."""
        switched = self.restaurant_id is not None and str(self.restaurant_id) != str(restaurant_id)
        if switched:
            self.reset()
        if self.is_empty:
            self.applied_discount = None
            self.restaurant_id = str(restaurant_id)
        self.items.append(line)
        return switched

    def remove(self, item_ref) -> bool:
        line = self.find(item_ref)
        if line is None:
            return False
        self.items.remove(line)
        if self.is_empty:
            self.reset()
        return True

    def reset(self):
        self.restaurant_id = None
        self.items = []
        self.applied_discount = None
        self.tip = ZERO

    def to_dict(self) -> dict:
        return {
            "restaurant_id": self.restaurant_id,
            "items": [item.to_dict() for item in self.items],
            "applied_discount": self.applied_discount.to_dict() if self.applied_discount else None,
            "tip": float(self.tip),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Cart":
        discount = data.get("applied_discount")
        return cls(
            restaurant_id=data.get("restaurant_id"),
            items=[CartLineItem.from_dict(item) for item in data.get("items", [])],
            applied_discount=AppliedDiscount.from_dict(discount) if discount else None,
            tip=to_money(data.get("tip", 0)),
        )
