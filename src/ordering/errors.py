"""Ordering error taxonomy.

Every business failure is an ``OrderingError`` subclass carrying a stable
machine-readable ``code``, the HTTP status it maps to, and a coarse
``category`` (validation, state, policy, not_found, payment).
"""


class OrderingError(Exception):
    code = "ORDERING_ERROR"
    status_code = 400
    category = "validation"
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None, **details) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload = {"error_code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
class InvalidInput(OrderingError):
    code = "INVALID_INPUT"
    default_message = "Invalid input"


class Unauthenticated(OrderingError):
    code = "UNAUTHENTICATED"
    status_code = 401
    default_message = "Authentication required"


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------
class StateError(OrderingError):
    category = "state"


class CartEmpty(StateError):
    code = "CART_EMPTY"
    default_message = "Cart is empty"


class RestaurantMismatch(StateError):
    code = "RESTAURANT_MISMATCH"
    default_message = "Cart items are from a different restaurant"


class OrderDelivered(StateError):
    code = "ORDER_DELIVERED"
    default_message = "Cannot modify a delivered order"


class CannotCancel(StateError):
    code = "CANNOT_CANCEL"
    default_message = "Order can no longer be cancelled"


class TooLateToCancel(StateError):
    code = "TOO_LATE_TO_CANCEL"
    default_message = "Order is already ready or out for delivery and cannot be cancelled"


class InvalidStatusTransition(StateError):
    code = "INVALID_STATUS_TRANSITION"
    default_message = "Order cannot move to the requested status"


class NoUpdates(StateError):
    code = "NO_UPDATES"
    default_message = "No updates provided"


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------
class PolicyError(OrderingError):
    category = "policy"


class ItemUnavailable(PolicyError):
    code = "ITEM_UNAVAILABLE"
    default_message = "Menu item is currently unavailable"


class DeliveryNotAccepted(PolicyError):
    code = "DELIVERY_NOT_ACCEPTED"
    default_message = "Restaurant does not accept delivery orders"


class PickupNotAccepted(PolicyError):
    code = "PICKUP_NOT_ACCEPTED"
    default_message = "Restaurant does not accept pickup orders"


class MissingAddress(PolicyError):
    code = "MISSING_ADDRESS"
    default_message = "Complete delivery address is required for delivery orders"


class MinimumOrderNotMet(PolicyError):
    code = "MINIMUM_ORDER_NOT_MET"
    default_message = "Order subtotal is below the restaurant minimum"


class InvalidCoupon(PolicyError):
    code = "INVALID_COUPON"
    default_message = "Invalid or expired coupon code"


class DiscountInactive(PolicyError):
    code = "DISCOUNT_INACTIVE"
    default_message = "Discount is not active"


class MinimumNotMet(PolicyError):
    code = "MINIMUM_NOT_MET"
    default_message = "Order subtotal is below the discount minimum"


class RedemptionLimitReached(PolicyError):
    code = "REDEMPTION_LIMIT_REACHED"
    default_message = "Discount redemption limit reached"


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------
class NotFound(OrderingError):
    code = "NOT_FOUND"
    status_code = 404
    category = "not_found"
    default_message = "Resource not found"


class ItemNotFound(NotFound):
    code = "ITEM_NOT_FOUND"
    default_message = "Menu item not found"


class ItemNotInCart(NotFound):
    code = "ITEM_NOT_IN_CART"
    default_message = "Item not found in cart"


class RestaurantNotFound(NotFound):
    code = "RESTAURANT_NOT_FOUND"
    default_message = "Restaurant not found"


class OrderNotFound(NotFound):
    code = "ORDER_NOT_FOUND"
    default_message = "Order not found"


# ---------------------------------------------------------------------------
# Payment
# ---------------------------------------------------------------------------
class PaymentFailed(OrderingError):
    code = "PAYMENT_FAILED"
    status_code = 402
    category = "payment"
    default_message = "Payment processing failed"
