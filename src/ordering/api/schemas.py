"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands and the cart dataclasses.
"""

from typing import Literal

from pydantic import BaseModel, Field

OrderTypeLiteral = Literal["delivery", "pickup"]
OrderStatusLiteral = Literal["order_received", "preparing", "ready", "out_for_delivery", "delivered", "cancelled"]


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class PricedOptionSchema(BaseModel):
    name: str
    price: float = Field(ge=0, default=0.0)


class DeliveryAddressSchema(BaseModel):
    # Fields are optional here so that incomplete addresses surface as MISSING_ADDRESS
    street_address: str | None = None
    apartment_suite: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    delivery_instructions: str | None = None


class TotalsSchema(BaseModel):
    subtotal: float
    discount_amount: float
    delivery_fee: float
    tax: float
    tip: float
    grand_total: float


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    menu_item_id: str
    quantity: int = Field(ge=1, default=1)
    size: str | None = None
    addons: list[str] = Field(default_factory=list)
    modifications: list[PricedOptionSchema] = Field(default_factory=list)
    special_instructions: str | None = Field(default=None, max_length=500)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "menu_item_id": "item-001",
                    "quantity": 2,
                    "size": "Large",
                    "addons": ["Extra cheese"],
                    "modifications": [{"name": "No onions", "price": 0}],
                }
            ]
        }
    }


class UpdateCartItemRequest(BaseModel):
    quantity: int | None = Field(ge=1, default=None)
    size: str | None = None
    addons: list[str] | None = None
    modifications: list[PricedOptionSchema] | None = None
    special_instructions: str | None = Field(default=None, max_length=500)


class ApplyDiscountRequest(BaseModel):
    coupon_code: str = Field(min_length=1)


class UpdateCartRequest(BaseModel):
    tip: float = Field(ge=0)


# ---------------------------------------------------------------------------
# Cart Response Schemas
# ---------------------------------------------------------------------------
class CartLineSchema(BaseModel):
    line_id: str
    menu_item_id: str
    item_name: str
    base_price: float
    quantity: int
    size: str | None = None
    size_price_delta: float = 0.0
    addons: list[PricedOptionSchema] = Field(default_factory=list)
    modifications: list[PricedOptionSchema] = Field(default_factory=list)
    special_instructions: str | None = None
    item_total_price: float


class AppliedDiscountSchema(BaseModel):
    discount_id: str
    code: str | None = None
    discount_type: str
    discount_value: float


class CartResponse(BaseModel):
    restaurant_id: str | None = None
    items: list[CartLineSchema] = Field(default_factory=list)
    applied_discount: AppliedDiscountSchema | None = None
    tip: float = 0.0
    totals: TotalsSchema


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    restaurant_id: str
    order_type: OrderTypeLiteral
    payment_method_id: str = Field(min_length=1)
    delivery_address: DeliveryAddressSchema | None = None
    special_instructions: str | None = Field(default=None, max_length=1000)
    tip: float | None = Field(ge=0, default=None)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "restaurant_id": "rest-001",
                    "order_type": "delivery",
                    "payment_method_id": "pm-001",
                    "delivery_address": {
                        "street_address": "123 Main St",
                        "city": "Springfield",
                        "state": "IL",
                        "zip_code": "62701",
                    },
                    "tip": 2.0,
                }
            ]
        }
    }


class UpdateOrderRequest(BaseModel):
    tip: float | None = Field(ge=0, default=None)
    special_instructions: str | None = Field(default=None, max_length=1000)


class CancelOrderRequest(BaseModel):
    cancellation_reason: str | None = Field(default=None, max_length=500)


class AdvanceOrderStatusRequest(BaseModel):
    order_status: OrderStatusLiteral
    reason: str | None = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Order Response Schemas
# ---------------------------------------------------------------------------
class OrderItemSchema(BaseModel):
    order_item_id: str
    menu_item_id: str
    item_name: str
    base_price: float
    quantity: int
    size: str | None = None
    size_price_delta: float = 0.0
    addons: list[PricedOptionSchema] = Field(default_factory=list)
    modifications: list[PricedOptionSchema] = Field(default_factory=list)
    special_instructions: str | None = None
    item_total_price: float


class OrderSchema(BaseModel):
    order_id: str
    user_id: str
    restaurant_id: str
    order_type: str
    order_status: str
    delivery_address: DeliveryAddressSchema | None = None
    special_instructions: str | None = None
    subtotal: float
    discount_amount: float
    delivery_fee: float
    tax: float
    tip: float
    grand_total: float
    discount_id: str | None = None
    payment_method_id: str | None = None
    payment_status: str | None = None
    payment_transaction_id: str | None = None
    estimated_delivery_time: str | None = None
    estimated_pickup_time: str | None = None
    order_received_at: str | None = None
    preparing_at: str | None = None
    ready_at: str | None = None
    out_for_delivery_at: str | None = None
    delivered_at: str | None = None
    cancelled_at: str | None = None
    cancellation_reason: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class RestaurantSummarySchema(BaseModel):
    restaurant_id: str
    restaurant_name: str
    phone_number: str | None = None
    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None


class PlacedOrderResponse(BaseModel):
    order: OrderSchema
    items: list[OrderItemSchema]
    restaurant: RestaurantSummarySchema


class OrderDetailResponse(BaseModel):
    order: OrderSchema
    items: list[OrderItemSchema]


class OrderListResponse(BaseModel):
    orders: list[OrderSchema]
    total_count: int


class CancelOrderResponse(BaseModel):
    order: OrderSchema
    message: str


class SkippedItemSchema(BaseModel):
    menu_item_id: str
    item_name: str
    reason: str


class ReorderResponse(BaseModel):
    cart: CartResponse
    skipped_items: list[SkippedItemSchema] = Field(default_factory=list)
