"""FastAPI routes for the Ordering domain: cart and orders."""

from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from ordering.api.dependencies import current_user_email, current_user_id
from ordering.api.schemas import (
    AddCartItemRequest,
    AdvanceOrderStatusRequest,
    ApplyDiscountRequest,
    CancelOrderRequest,
    CancelOrderResponse,
    CartResponse,
    CreateOrderRequest,
    OrderDetailResponse,
    OrderListResponse,
    OrderStatusLiteral,
    OrderTypeLiteral,
    PlacedOrderResponse,
    ReorderResponse,
    UpdateCartItemRequest,
    UpdateCartRequest,
    UpdateOrderRequest,
)
from ordering.cart.cart import Cart
from ordering.cart.service import CartService
from ordering.checkout.coordinator import CheckoutCoordinator, OrderRequest
from ordering.order.cancellation import CancelOrder
from ordering.order.modification import UpdateOrderDetails
from ordering.order.order import Order
from ordering.order.progression import AdvanceOrderStatus
from ordering.order.queries import get_order, list_orders
from ordering.order.reorder import reorder


def _cart_response(service: CartService, cart: Cart) -> CartResponse:
    return CartResponse(**cart.to_dict(), totals=service.totals(cart).as_floats())


def _order_detail(order: Order) -> dict:
    return {"order": order.to_dict(), "items": [item.to_dict() for item in order.items]}


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def view_cart(user_id: str = Depends(current_user_id)) -> CartResponse:
    service = CartService()
    return _cart_response(service, service.get(user_id))


@cart_router.post("/items", status_code=201, response_model=CartResponse)
async def add_cart_item(body: AddCartItemRequest, user_id: str = Depends(current_user_id)) -> CartResponse:
    service = CartService()
    cart = service.add_item(
        user_id,
        body.menu_item_id,
        quantity=body.quantity,
        size=body.size,
        addons=body.addons,
        modifications=[m.model_dump() for m in body.modifications],
        special_instructions=body.special_instructions,
    )
    return _cart_response(service, cart)


@cart_router.patch("/items/{item_ref}", response_model=CartResponse)
async def update_cart_item(
    item_ref: str, body: UpdateCartItemRequest, user_id: str = Depends(current_user_id)
) -> CartResponse:
    service = CartService()
    cart = service.update_item(user_id, item_ref, **body.model_dump(exclude_unset=True))
    return _cart_response(service, cart)


@cart_router.delete("/items/{item_ref}", response_model=CartResponse)
async def remove_cart_item(item_ref: str, user_id: str = Depends(current_user_id)) -> CartResponse:
    service = CartService()
    return _cart_response(service, service.remove_item(user_id, item_ref))


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(user_id: str = Depends(current_user_id)) -> CartResponse:
    service = CartService()
    service.clear(user_id)
    return _cart_response(service, Cart())


@cart_router.patch("", response_model=CartResponse)
async def update_cart(body: UpdateCartRequest, user_id: str = Depends(current_user_id)) -> CartResponse:
    service = CartService()
    return _cart_response(service, service.set_tip(user_id, Decimal(str(body.tip))))


@cart_router.post("/discount", response_model=CartResponse)
async def apply_discount(body: ApplyDiscountRequest, user_id: str = Depends(current_user_id)) -> CartResponse:
    service = CartService()
    return _cart_response(service, service.apply_discount(user_id, body.coupon_code))


@cart_router.delete("/discount", response_model=CartResponse)
async def remove_discount(user_id: str = Depends(current_user_id)) -> CartResponse:
    service = CartService()
    return _cart_response(service, service.remove_discount(user_id))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=PlacedOrderResponse)
def place_order(
    body: CreateOrderRequest,
    user_id: str = Depends(current_user_id),
    user_email: str | None = Depends(current_user_email),
) -> PlacedOrderResponse:
    """Check out the caller's cart.

    1. Validate the cart against the restaurant's rules
    2. Charge the payment method
    3. Persist the order and counters atomically, then clear the cart
    """
    request = OrderRequest(
        restaurant_id=body.restaurant_id,
        order_type=body.order_type,
        payment_method_id=body.payment_method_id,
        delivery_address=body.delivery_address.model_dump(exclude_none=True) if body.delivery_address else None,
        special_instructions=body.special_instructions,
        tip=Decimal(str(body.tip)) if body.tip is not None else None,
    )
    cart = CartService().get(user_id)
    placed = CheckoutCoordinator().checkout(user_id, cart, request, user_email=user_email)
    return PlacedOrderResponse(**placed.to_dict())


@order_router.get("", response_model=OrderListResponse)
async def order_history(
    user_id: str = Depends(current_user_id),
    order_type: OrderTypeLiteral | None = None,
    order_status: OrderStatusLiteral | None = None,
    restaurant_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> OrderListResponse:
    result = list_orders(
        user_id,
        order_type=order_type,
        order_status=order_status,
        restaurant_id=restaurant_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return OrderListResponse(
        orders=[order.to_dict() for order in result["orders"]],
        total_count=result["total_count"],
    )


@order_router.get("/{order_id}", response_model=OrderDetailResponse)
async def order_detail(order_id: str, user_id: str = Depends(current_user_id)) -> OrderDetailResponse:
    return OrderDetailResponse(**_order_detail(get_order(order_id, user_id)))


@order_router.patch("/{order_id}", response_model=OrderDetailResponse)
async def update_order(
    order_id: str, body: UpdateOrderRequest, user_id: str = Depends(current_user_id)
) -> OrderDetailResponse:
    command = UpdateOrderDetails(
        order_id=order_id,
        user_id=user_id,
        tip=body.tip,
        special_instructions=body.special_instructions,
    )
    current_domain.process(command, asynchronous=False)
    return OrderDetailResponse(**_order_detail(get_order(order_id, user_id)))


@order_router.delete("/{order_id}", response_model=CancelOrderResponse)
async def cancel_order(
    order_id: str, body: CancelOrderRequest | None = None, user_id: str = Depends(current_user_id)
) -> CancelOrderResponse:
    command = CancelOrder(
        order_id=order_id,
        user_id=user_id,
        reason=body.cancellation_reason if body else None,
    )
    current_domain.process(command, asynchronous=False)
    return CancelOrderResponse(
        order=get_order(order_id, user_id).to_dict(),
        message="Order cancelled. Refund will be processed within 3-5 business days.",
    )


@order_router.post("/{order_id}/reorder", response_model=ReorderResponse)
async def reorder_items(order_id: str, user_id: str = Depends(current_user_id)) -> ReorderResponse:
    service = CartService()
    result = reorder(user_id, order_id, service=service)
    return ReorderResponse(cart=_cart_response(service, result["cart"]), skipped_items=result["skipped_items"])


@order_router.put(
    "/{order_id}/status",
    response_model=OrderDetailResponse,
    dependencies=[Depends(current_user_id)],
)
async def advance_order_status(order_id: str, body: AdvanceOrderStatusRequest) -> OrderDetailResponse:
    command = AdvanceOrderStatus(order_id=order_id, new_status=body.order_status, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return OrderDetailResponse(**_order_detail(get_order(order_id)))
