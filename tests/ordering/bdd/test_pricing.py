"""BDD tests for cart pricing."""

from decimal import Decimal

import pytest
from ordering.pricing.engine import DiscountTerms, price
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/pricing.feature")


@pytest.fixture()
def pricing_input():
    return {"lines": [], "delivery_fee": Decimal("0"), "tip": None, "discount": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("a cart line of {quantity:d} x {unit_price}"))
def cart_line(pricing_input, quantity, unit_price):
    pricing_input["lines"].append(Decimal(unit_price) * quantity)


@given(parsers.cfparse("a delivery fee of {fee}"))
def delivery_fee(pricing_input, fee):
    pricing_input["delivery_fee"] = Decimal(fee)


@given(parsers.cfparse("a tip of {tip}"))
def tip_amount(pricing_input, tip):
    pricing_input["tip"] = Decimal(tip)


@given(parsers.cfparse("a percentage discount of {value}"))
def percentage_discount(pricing_input, value):
    pricing_input["discount"] = DiscountTerms.of("percentage", value)


@given(parsers.cfparse("a fixed amount discount of {value}"))
def fixed_discount(pricing_input, value):
    pricing_input["discount"] = DiscountTerms.of("fixed_amount", value)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("the cart is priced for {order_type}"), target_fixture="breakdown")
def priced(pricing_input, order_type):
    return price(
        pricing_input["lines"],
        delivery_fee=pricing_input["delivery_fee"],
        discount=pricing_input["discount"],
        tip=pricing_input["tip"],
        pickup=order_type == "pickup",
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the tax is {amount}"))
def tax_is(breakdown, amount):
    assert breakdown.tax == Decimal(amount)


@then(parsers.cfparse("the discount amount is {amount}"))
def discount_is(breakdown, amount):
    assert breakdown.discount_amount == Decimal(amount)


@then(parsers.cfparse("the delivery fee charged is {amount}"))
def fee_is(breakdown, amount):
    assert breakdown.delivery_fee == Decimal(amount)


@then(parsers.cfparse("the grand total is {amount}"))
def grand_total_is(breakdown, amount):
    assert breakdown.grand_total == Decimal(amount)
