"""Tests for the Order aggregate: placement, invariants and post-placement edits."""

import json
from decimal import Decimal

import pytest
from ordering.cart.cart import CartLineItem, PricedOption
from ordering.errors import OrderDelivered
from ordering.order.events import OrderDetailsUpdated, OrderPlaced
from ordering.order.order import Order
from ordering.pricing.engine import DiscountTerms, price
from protean.exceptions import ValidationError

ADDRESS = {"street_address": "1 Elm St", "city": "Springfield", "state": "IL", "zip_code": "62701"}


def _lines():
    return [
        CartLineItem(
            menu_item_id="item-1",
            item_name="Pizza",
            base_price=Decimal("12.99"),
            addons=[PricedOption("Olives", Decimal("0.75"))],
        ),
        CartLineItem(menu_item_id="item-2", item_name="Soda", base_price=Decimal("2.00"), quantity=2),
    ]


def _place(**overrides):
    lines = _lines()
    attrs = {
        "user_id": "user-1",
        "restaurant_id": "rest-1",
        "order_type": "delivery",
        "lines": lines,
        "breakdown": price(
            [line.item_total_price for line in lines],
            delivery_fee="4.99",
            discount=DiscountTerms.of("percentage", 10),
            tip=Decimal("3.00"),
        ),
        "delivery_address": ADDRESS,
        "discount_id": "disc-1",
        "payment_method_id": "pm-1",
        "payment_transaction_id": "txn-1",
    }
    attrs.update(overrides)
    return Order.place(**attrs)


class TestPlacement:
    def test_copies_lines_and_money(self):
        order = _place()

        assert len(order.items) == 2
        pizza = next(i for i in order.items if i.item_name == "Pizza")
        assert json.loads(pizza.addons) == [{"name": "Olives", "price": 0.75}]
        assert pizza.item_total_price == 13.74
        assert order.subtotal == 17.74
        assert order.discount_amount == 1.77
        assert order.delivery_fee == 4.99
        assert order.tax == 1.78
        assert order.tip == 3.0
        assert order.grand_total == 25.74
        assert order.payment_status == "completed"

    def test_raises_order_placed(self):
        order = _place()
        event = order._events[-1]
        assert isinstance(event, OrderPlaced)
        assert event.item_count == 3
        assert event.grand_total == order.grand_total
        assert event.discount_id == "disc-1"

    def test_delivery_requires_address(self):
        with pytest.raises(ValidationError) as exc:
            _place(delivery_address=None)
        assert "delivery_address" in str(exc.value.messages)

    def test_pickup_needs_no_address(self):
        lines = _lines()
        order = _place(
            order_type="pickup",
            delivery_address=None,
            breakdown=price([line.item_total_price for line in lines], delivery_fee="4.99", pickup=True),
        )
        assert order.delivery_fee == 0.0
        assert order.delivery_address is None

    def test_inconsistent_grand_total_rejected(self):
        order = _place()
        with pytest.raises(ValidationError):
            order.grand_total = order.grand_total + 1


class TestUpdateDetails:
    def test_tip_change_recomputes_grand_total_only(self):
        order = _place()
        tax_before = order.tax

        order.update_details(tip=5)

        assert order.tip == 5.0
        assert order.tax == tax_before
        assert order.grand_total == 27.74
        assert isinstance(order._events[-1], OrderDetailsUpdated)

    def test_special_instructions(self):
        order = _place()
        order.update_details(special_instructions="Ring the bell")
        assert order.special_instructions == "Ring the bell"
        assert order.grand_total == 25.74

    def test_negative_tip_rejected(self):
        with pytest.raises(ValidationError):
            _place().update_details(tip=-1)

    def test_delivered_orders_are_frozen(self):
        order = _place()
        for status in ("preparing", "ready", "out_for_delivery", "delivered"):
            order.advance_to(status)
        with pytest.raises(OrderDelivered):
            order.update_details(tip=10)

    def test_edits_allowed_while_out_for_delivery(self):
        order = _place()
        for status in ("preparing", "ready", "out_for_delivery"):
            order.advance_to(status)
        order.update_details(tip=4)
        assert order.tip == 4.0
