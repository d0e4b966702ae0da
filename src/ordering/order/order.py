"""Order aggregate (CQRS): the durable record of a placed order.

Orders are written once by checkout together with their line items, then
only move through status transitions or have the tip and special
instructions edited before delivery.

State Machine:
    ORDER_RECEIVED → PREPARING → READY → OUT_FOR_DELIVERY → DELIVERED   (delivery)
    ORDER_RECEIVED → PREPARING → READY → DELIVERED                      (pickup)
    CANCELLED (from ORDER_RECEIVED, PREPARING)
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from ordering.domain import ordering
from ordering.errors import CannotCancel, InvalidStatusTransition, OrderDelivered, TooLateToCancel
from ordering.order.events import OrderCancelled, OrderDetailsUpdated, OrderPlaced, OrderStatusAdvanced
from ordering.pricing.engine import recompute_grand_total, to_money


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderType(Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


class OrderStatus(Enum):
    ORDER_RECEIVED = "order_received"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    COMPLETED = "completed"
    REFUND_PENDING = "refund_pending"


_VALID_TRANSITIONS = {
    OrderStatus.ORDER_RECEIVED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_CANCELLABLE_STATES = {OrderStatus.ORDER_RECEIVED, OrderStatus.PREPARING}
_TOO_LATE_STATES = {OrderStatus.READY, OrderStatus.OUT_FOR_DELIVERY}

# Milestone timestamp field stamped on entering each state
_MILESTONES = {
    OrderStatus.ORDER_RECEIVED: "order_received_at",
    OrderStatus.PREPARING: "preparing_at",
    OrderStatus.READY: "ready_at",
    OrderStatus.OUT_FOR_DELIVERY: "out_for_delivery_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class DeliveryAddress:
    """Where a delivery order goes, captured at checkout and never edited."""

    street_address = String(required=True, max_length=255)
    apartment_suite = String(max_length=50)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=50)
    zip_code = String(required=True, max_length=20)
    delivery_instructions = String(max_length=500)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """Immutable copy of a cart line at the moment the order was placed."""

    menu_item_id = Identifier(required=True)
    item_name = String(required=True, max_length=255)
    base_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    size = String(max_length=50)
    size_price_delta = Float(default=0.0)
    addons = Text()  # JSON: [{name, price}]
    modifications = Text()  # JSON: [{name, price}]
    special_instructions = String(max_length=500)
    item_total_price = Float(required=True, min_value=0.0)

    def to_dict(self) -> dict:
        return {
            "order_item_id": str(self.id),
            "menu_item_id": str(self.menu_item_id),
            "item_name": self.item_name,
            "base_price": self.base_price,
            "quantity": self.quantity,
            "size": self.size,
            "size_price_delta": self.size_price_delta,
            "addons": json.loads(self.addons) if self.addons else [],
            "modifications": json.loads(self.modifications) if self.modifications else [],
            "special_instructions": self.special_instructions,
            "item_total_price": self.item_total_price,
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    user_id = Identifier(required=True)
    restaurant_id = Identifier(required=True)
    order_type = String(choices=OrderType, required=True)
    order_status = String(choices=OrderStatus, default=OrderStatus.ORDER_RECEIVED.value)
    delivery_address = ValueObject(DeliveryAddress)
    special_instructions = String(max_length=1000)
    items = HasMany(OrderItem)

    subtotal = Float(required=True, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    delivery_fee = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    tip = Float(default=0.0, min_value=0.0)
    grand_total = Float(required=True, min_value=0.0)
    discount_id = Identifier()

    payment_method_id = String(max_length=255)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.COMPLETED.value)
    payment_transaction_id = String(max_length=255)

    estimated_delivery_time = DateTime()
    estimated_pickup_time = DateTime()
    order_received_at = DateTime()
    preparing_at = DateTime()
    ready_at = DateTime()
    out_for_delivery_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def delivery_orders_need_an_address(self):
        if self.order_type == OrderType.DELIVERY.value and self.delivery_address is None:
            raise ValidationError({"delivery_address": ["Delivery orders require a delivery address"]})

    @invariant.post
    def grand_total_matches_components(self):
        expected = recompute_grand_total(self.subtotal, self.discount_amount, self.delivery_fee, self.tax, self.tip)
        if to_money(self.grand_total) != expected:
            raise ValidationError({"grand_total": [f"Grand total {self.grand_total} does not match {expected}"]})

    @invariant.post
    def discount_cannot_exceed_subtotal(self):
        if to_money(self.discount_amount) > to_money(self.subtotal):
            raise ValidationError({"discount_amount": ["Discount cannot exceed subtotal"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id,
        restaurant_id,
        order_type,
        lines,
        breakdown,
        delivery_address=None,
        special_instructions=None,
        discount_id=None,
        payment_method_id=None,
        payment_transaction_id=None,
        estimated_delivery_time=None,
        estimated_pickup_time=None,
    ):
        """Build a new order from cart lines and a price breakdown.

        Args:
            lines: ``CartLineItem`` objects from the cart being checked out.
            breakdown: ``PriceBreakdown`` from the pricing engine.
            delivery_address: Dict of address fields, required for delivery.
        """
        now = datetime.now(UTC)
        items = [
            OrderItem(
                menu_item_id=line.menu_item_id,
                item_name=line.item_name,
                base_price=float(line.base_price),
                quantity=line.quantity,
                size=line.size,
                size_price_delta=float(line.size_price_delta),
                addons=json.dumps([a.to_dict() for a in line.addons]),
                modifications=json.dumps([m.to_dict() for m in line.modifications]),
                special_instructions=line.special_instructions,
                item_total_price=float(line.item_total_price),
            )
            for line in lines
        ]

        order = cls(
            user_id=str(user_id),
            restaurant_id=str(restaurant_id),
            order_type=OrderType(order_type).value,
            order_status=OrderStatus.ORDER_RECEIVED.value,
            delivery_address=DeliveryAddress(**delivery_address) if delivery_address else None,
            special_instructions=special_instructions,
            items=items,
            discount_id=str(discount_id) if discount_id else None,
            payment_method_id=payment_method_id,
            payment_status=PaymentStatus.COMPLETED.value,
            payment_transaction_id=payment_transaction_id,
            estimated_delivery_time=estimated_delivery_time,
            estimated_pickup_time=estimated_pickup_time,
            order_received_at=now,
            created_at=now,
            updated_at=now,
            **breakdown.as_floats(),
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                restaurant_id=str(restaurant_id),
                order_type=order.order_type,
                item_count=sum(item.quantity for item in items),
                subtotal=order.subtotal,
                discount_amount=order.discount_amount,
                delivery_fee=order.delivery_fee,
                tax=order.tax,
                tip=order.tip,
                grand_total=order.grand_total,
                discount_id=order.discount_id,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    @property
    def status(self) -> OrderStatus:
        return OrderStatus(self.order_status)

    def can_transition_to(self, target: OrderStatus) -> bool:
        if target not in _VALID_TRANSITIONS[self.status]:
            return False
        if self.status == OrderStatus.READY:
            # Pickup orders are handed over at the counter; delivery orders must go out first
            if self.order_type == OrderType.PICKUP.value:
                return target == OrderStatus.DELIVERED
            return target == OrderStatus.OUT_FOR_DELIVERY
        return True

    def _stamp(self, target: OrderStatus, now: datetime):
        setattr(self, _MILESTONES[target], now)
        self.order_status = target.value
        self.updated_at = now

    def advance_to(self, new_status, reason=None):
        target = OrderStatus(new_status)
        if target == OrderStatus.CANCELLED:
            return self.cancel(reason, default_reason="Cancelled by restaurant")

        if not self.can_transition_to(target):
            raise InvalidStatusTransition(
                f"Cannot move a {self.order_type} order from {self.order_status} to {target.value}"
            )

        previous = self.order_status
        now = datetime.now(UTC)
        self._stamp(target, now)

        self.raise_(
            OrderStatusAdvanced(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                changed_at=now,
            )
        )

    def cancel(self, reason=None, default_reason="User cancelled"):
        if self.status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED):
            raise CannotCancel(f"Cannot cancel an order that is {self.order_status}")
        if self.status in _TOO_LATE_STATES:
            raise TooLateToCancel()
        if self.status not in _CANCELLABLE_STATES:
            raise CannotCancel()

        previous = self.order_status
        now = datetime.now(UTC)
        self.cancellation_reason = reason or default_reason
        self.payment_status = PaymentStatus.REFUND_PENDING.value
        self._stamp(OrderStatus.CANCELLED, now)

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                user_id=str(self.user_id),
                previous_status=previous,
                reason=self.cancellation_reason,
                grand_total=self.grand_total,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Post-placement edits
    # -------------------------------------------------------------------
    def _assert_editable(self):
        if self.status == OrderStatus.DELIVERED:
            raise OrderDelivered()

    def update_details(self, tip=None, special_instructions=None):
        """Change the tip and/or special instructions; a tip change recomputes only the grand total."""
        self._assert_editable()
        if tip is not None:
            tip = to_money(tip)
            if tip < 0:
                raise ValidationError({"tip": ["Tip cannot be negative"]})
        now = datetime.now(UTC)

        with atomic_change(self):
            if tip is not None:
                self.tip = float(tip)
                self.grand_total = float(
                    recompute_grand_total(self.subtotal, self.discount_amount, self.delivery_fee, self.tax, tip)
                )
            if special_instructions is not None:
                self.special_instructions = special_instructions
            self.updated_at = now

        self.raise_(
            OrderDetailsUpdated(
                order_id=str(self.id),
                tip=self.tip,
                grand_total=self.grand_total,
                special_instructions=self.special_instructions,
                updated_at=now,
            )
        )

    def to_dict(self) -> dict:
        address = self.delivery_address
        return {
            "order_id": str(self.id),
            "user_id": str(self.user_id),
            "restaurant_id": str(self.restaurant_id),
            "order_type": self.order_type,
            "order_status": self.order_status,
            "delivery_address": address.to_dict() if address else None,
            "special_instructions": self.special_instructions,
            "subtotal": self.subtotal,
            "discount_amount": self.discount_amount,
            "delivery_fee": self.delivery_fee,
            "tax": self.tax,
            "tip": self.tip,
            "grand_total": self.grand_total,
            "discount_id": str(self.discount_id) if self.discount_id else None,
            "payment_method_id": self.payment_method_id,
            "payment_status": self.payment_status,
            "payment_transaction_id": self.payment_transaction_id,
            "estimated_delivery_time": _iso(self.estimated_delivery_time),
            "estimated_pickup_time": _iso(self.estimated_pickup_time),
            "order_received_at": _iso(self.order_received_at),
            "preparing_at": _iso(self.preparing_at),
            "ready_at": _iso(self.ready_at),
            "out_for_delivery_at": _iso(self.out_for_delivery_at),
            "delivered_at": _iso(self.delivered_at),
            "cancelled_at": _iso(self.cancelled_at),
            "cancellation_reason": self.cancellation_reason,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


def _iso(value):
    return value.isoformat() if value else None
