"""Checkout: turns a user's cart into a paid, persisted order.

Flow:
    1. Validate the cart and request against the restaurant's rules
    2. Price the cart (request tip overrides the cart tip)
    3. Under the discount lock: re-validate the discount, charge the payment
       method, then write everything in one unit of work:
       Order + OrderItems, restaurant counter, user statistics and, when a
       discount is applied, the redemption and the discount counter
    4. Clear the cart
    5. Send a confirmation email, best effort

A declined or timed-out payment raises ``PaymentFailed`` before anything is
written. A failure inside the unit of work rolls every write back and
leaves the cart untouched.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Optional

from notifications.channel import get_email_channel
from notifications.channel.email_port import EmailPort
from notifications.templates import get_template
from payments.gateway import get_gateway
from payments.gateway.port import PaymentGateway
from protean import UnitOfWork
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.cart.store import CartStore, get_cart_store
from ordering.discount.discount import Discount
from ordering.discount.ledger import RedemptionLedger, discount_lock_key
from ordering.errors import (
    CartEmpty,
    DeliveryNotAccepted,
    InvalidInput,
    MinimumOrderNotMet,
    MissingAddress,
    PaymentFailed,
    PickupNotAccepted,
    RestaurantMismatch,
    RestaurantNotFound,
)
from ordering.order.order import Order, OrderType
from ordering.pricing import engine
from ordering.restaurant.restaurant import Restaurant
from ordering.settings import OrderingSettings, get_settings
from ordering.statistics.user_statistics import UserStatistics, statistics_for
from ordering.utils.locks import serialized
from ordering.utils.logging import get_logger
from ordering.utils.timeouts import CallTimedOut, call_with_timeout

logger = get_logger(__name__)

REQUIRED_ADDRESS_FIELDS = ("street_address", "city", "state", "zip_code")


@dataclass(frozen=True)
class OrderRequest:
    restaurant_id: str
    order_type: str
    payment_method_id: str
    delivery_address: Optional[dict] = None
    special_instructions: Optional[str] = None
    tip: Optional[Decimal] = None


@dataclass(frozen=True)
class PlacedOrder:
    order: Order
    restaurant: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "order": self.order.to_dict(),
            "items": [item.to_dict() for item in self.order.items],
            "restaurant": self.restaurant,
        }


class CheckoutCoordinator:
    def __init__(
        self,
        store: CartStore | None = None,
        ledger: RedemptionLedger | None = None,
        gateway: PaymentGateway | None = None,
        email_channel: EmailPort | None = None,
        settings: OrderingSettings | None = None,
    ) -> None:
        self.store = store or get_cart_store()
        self.ledger = ledger or RedemptionLedger()
        self.gateway = gateway or get_gateway()
        self.email_channel = email_channel or get_email_channel()
        self.settings = settings or get_settings()

    # -------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------
    def checkout(self, user_id, cart: Cart, request: OrderRequest, user_email: str | None = None) -> PlacedOrder:
        restaurant = self._check_preconditions(cart, request)
        pickup = request.order_type == OrderType.PICKUP.value
        tip = request.tip if request.tip is not None else cart.tip

        applied = cart.applied_discount
        with serialized(discount_lock_key(applied.discount_id) if applied else None):
            discount = None
            if applied is not None:
                discount = self.ledger.load(applied.discount_id)
                subtotal = engine.to_money(sum(cart.line_totals(), Decimal(0)))
                self.ledger.validate(discount, subtotal, user_id)

            breakdown = engine.price(
                cart.line_totals(),
                delivery_fee=restaurant.delivery_fee,
                discount=discount.terms if discount else None,
                tip=tip,
                tax_rate=self.settings.tax_rate,
                pickup=pickup,
            )

            transaction_id = self._collect_payment(user_id, restaurant, request, breakdown)
            order = self._persist(user_id, cart, request, restaurant, breakdown, discount, transaction_id)

        self.store.delete(str(user_id))
        logger.info(
            "order_placed",
            order_id=str(order.id),
            user_id=str(user_id),
            restaurant_id=str(restaurant.id),
            grand_total=order.grand_total,
            discount_id=order.discount_id,
        )

        placed = PlacedOrder(order=order, restaurant=restaurant.summary())
        if user_email:
            self._send_confirmation(user_email, placed)
        return placed

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def _check_preconditions(self, cart: Cart, request: OrderRequest) -> Restaurant:
        if cart.is_empty:
            raise CartEmpty()
        if str(request.restaurant_id) != str(cart.restaurant_id):
            raise RestaurantMismatch()

        try:
            restaurant = current_domain.repository_for(Restaurant).get(request.restaurant_id)
        except ObjectNotFoundError as exc:
            raise RestaurantNotFound() from exc
        if not restaurant.is_active:
            raise RestaurantNotFound()

        if request.order_type not in {t.value for t in OrderType}:
            raise InvalidInput(f"Unknown order type '{request.order_type}'")
        if not restaurant.accepts(request.order_type):
            if request.order_type == OrderType.DELIVERY.value:
                raise DeliveryNotAccepted()
            raise PickupNotAccepted()

        if request.order_type == OrderType.DELIVERY.value:
            address = request.delivery_address or {}
            missing = [name for name in REQUIRED_ADDRESS_FIELDS if not address.get(name)]
            if missing:
                raise MissingAddress(missing_fields=missing)

        subtotal = engine.to_money(sum(cart.line_totals(), Decimal(0)))
        minimum = engine.to_money(restaurant.minimum_order_amount)
        if subtotal < minimum:
            raise MinimumOrderNotMet(
                f"Minimum order amount of ${minimum} not met",
                minimum_order_amount=float(minimum),
                subtotal=float(subtotal),
            )
        return restaurant

    def _collect_payment(self, user_id, restaurant: Restaurant, request: OrderRequest, breakdown) -> str:
        context = {
            "user_id": str(user_id),
            "restaurant_id": str(restaurant.id),
            "currency": self.settings.currency,
        }
        try:
            result = call_with_timeout(
                self.gateway.charge,
                self.settings.payment_timeout_seconds,
                request.payment_method_id,
                breakdown.grand_total,
                context,
            )
        except CallTimedOut as exc:
            logger.warning("payment_timed_out", user_id=str(user_id), amount=str(breakdown.grand_total))
            raise PaymentFailed("Payment timed out") from exc
        except Exception as exc:
            logger.error("payment_gateway_error", user_id=str(user_id), error=str(exc))
            raise PaymentFailed() from exc

        if not result.success:
            logger.info("payment_declined", user_id=str(user_id), reason=result.failure_reason)
            raise PaymentFailed(result.failure_reason or PaymentFailed.default_message)
        return result.transaction_id

    def _estimates(self, restaurant: Restaurant, order_type: str) -> dict:
        now = datetime.now(UTC)
        if order_type == OrderType.DELIVERY.value:
            minutes = restaurant.estimated_delivery_time_minutes or self.settings.fallback_delivery_minutes
            return {"estimated_delivery_time": now + timedelta(minutes=minutes)}
        minutes = restaurant.estimated_prep_time_minutes or self.settings.fallback_prep_minutes
        return {"estimated_pickup_time": now + timedelta(minutes=minutes)}

    def _persist(self, user_id, cart, request, restaurant, breakdown, discount: Discount | None, transaction_id):
        try:
            with serialized(f"restaurant:{restaurant.id}", f"user:{user_id}"):
                with UnitOfWork():
                    order = Order.place(
                        user_id=user_id,
                        restaurant_id=restaurant.id,
                        order_type=request.order_type,
                        lines=cart.items,
                        breakdown=breakdown,
                        delivery_address=request.delivery_address
                        if request.order_type == OrderType.DELIVERY.value
                        else None,
                        special_instructions=request.special_instructions,
                        discount_id=discount.id if discount else None,
                        payment_method_id=request.payment_method_id,
                        payment_transaction_id=transaction_id,
                        **self._estimates(restaurant, request.order_type),
                    )
                    current_domain.repository_for(Order).add(order)

                    restaurant_repo = current_domain.repository_for(Restaurant)
                    fresh_restaurant = restaurant_repo.get(restaurant.id)
                    fresh_restaurant.record_order()
                    restaurant_repo.add(fresh_restaurant)

                    stats = statistics_for(user_id)
                    stats.record_order(restaurant.id, fresh_restaurant.cuisines)

                    if discount is not None:
                        self.ledger.redeem(discount.id, user_id, order.id, breakdown.discount_amount)
                        stats.record_discount_redeemed()

                    current_domain.repository_for(UserStatistics).add(stats)
        except Exception:
            # The charge has already gone through; reconciliation needs the transaction id
            logger.error(
                "order_persistence_failed",
                user_id=str(user_id),
                restaurant_id=str(restaurant.id),
                payment_transaction_id=transaction_id,
                exc_info=True,
            )
            raise
        return order

    def _send_confirmation(self, user_email: str, placed: PlacedOrder) -> None:
        order = placed.order
        eta = order.estimated_delivery_time or order.estimated_pickup_time
        try:
            message = get_template("order_confirmation").render(
                {
                    "order_id": str(order.id),
                    "restaurant_name": placed.restaurant.get("restaurant_name"),
                    "order_type": order.order_type,
                    "grand_total": f"{order.grand_total:.2f}",
                    "currency": self.settings.currency,
                    "estimated_time": eta.strftime("%H:%M UTC") if eta else None,
                    "items": [item.to_dict() for item in order.items],
                }
            )
            result = call_with_timeout(
                self.email_channel.send,
                self.settings.notification_timeout_seconds,
                user_email,
                message["subject"],
                message["body"],
            )
        except Exception as exc:
            logger.warning("order_confirmation_failed", order_id=str(order.id), error=str(exc))
            return

        if not result.get("success"):
            logger.warning("order_confirmation_failed", order_id=str(order.id), error=result.get("error"))
