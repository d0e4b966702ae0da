"""Restaurant catalog read model.

Restaurants and their menus are owned by the catalog service; ordering keeps
the slice it needs to validate and price orders: the fee schedule, the
order types accepted, timing estimates and the running order counter.
"""

import json

from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, HasMany, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.aggregate
class Restaurant:
    restaurant_name = String(required=True, max_length=255)
    cuisine_types = Text()  # JSON array of cuisine names
    phone_number = String(max_length=30)
    street_address = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=50)
    zip_code = String(max_length=20)
    accepts_delivery = Boolean(default=True)
    accepts_pickup = Boolean(default=True)
    delivery_fee = Float(default=0.0, min_value=0.0)
    minimum_order_amount = Float(default=0.0, min_value=0.0)
    estimated_prep_time_minutes = Integer(min_value=0)
    estimated_delivery_time_minutes = Integer(min_value=0)
    total_order_count = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)

    @classmethod
    def register(cls, restaurant_name, cuisine_types=None, **attrs):
        return cls(
            restaurant_name=restaurant_name,
            cuisine_types=json.dumps(list(cuisine_types or [])),
            **attrs,
        )

    @property
    def cuisines(self) -> list[str]:
        return json.loads(self.cuisine_types) if self.cuisine_types else []

    def accepts(self, order_type: str) -> bool:
        if order_type == "delivery":
            return bool(self.accepts_delivery)
        if order_type == "pickup":
            return bool(self.accepts_pickup)
        return False

    def record_order(self):
        self.total_order_count = (self.total_order_count or 0) + 1

    def summary(self) -> dict:
        return {
            "restaurant_id": str(self.id),
            "restaurant_name": self.restaurant_name,
            "phone_number": self.phone_number,
            "street_address": self.street_address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
        }


@ordering.entity(part_of="MenuItem")
class MenuItemSize:
    size_name = String(required=True, max_length=50)
    price_adjustment = Float(default=0.0)


@ordering.entity(part_of="MenuItem")
class MenuItemAddon:
    addon_name = String(required=True, max_length=100)
    price = Float(default=0.0, min_value=0.0)


@ordering.aggregate
class MenuItem:
    restaurant_id = Identifier(required=True)
    item_name = String(required=True, max_length=255)
    base_price = Float(required=True, min_value=0.0)
    is_available = Boolean(default=True)
    sizes = HasMany(MenuItemSize)
    addons = HasMany(MenuItemAddon)

    def size_adjustment(self, size_name):
        """Price delta for a named size; ``None`` means no size was chosen."""
        if size_name is None:
            return 0.0
        size = next((s for s in self.sizes if s.size_name == size_name), None)
        if size is None:
            raise ValidationError({"size": [f"Unknown size '{size_name}' for {self.item_name}"]})
        return size.price_adjustment or 0.0

    def addon_price(self, addon_name) -> float:
        addon = next((a for a in self.addons if a.addon_name == addon_name), None)
        if addon is None:
            raise ValidationError({"addons": [f"Unknown add-on '{addon_name}' for {self.item_name}"]})
        return addon.price or 0.0
