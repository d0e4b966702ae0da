"""Read side for orders: ownership-scoped lookup and the history listing."""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.errors import InvalidInput, OrderNotFound
from ordering.order.order import Order, OrderStatus, OrderType
from ordering.settings import get_settings


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def get_order(order_id, user_id=None) -> Order:
    """Load an order; one owned by somebody else is reported as not found."""
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise OrderNotFound() from exc

    if user_id is not None and str(order.user_id) != str(user_id):
        raise OrderNotFound()
    return order


def list_orders(
    user_id,
    order_type: str | None = None,
    order_status: str | None = None,
    restaurant_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> dict:
    """A user's orders, newest first, with the unpaginated match count."""
    settings = get_settings()
    limit = settings.default_page_size if limit is None else limit
    if limit < 1 or limit > settings.max_page_size:
        raise InvalidInput(f"limit must be between 1 and {settings.max_page_size}")
    if offset < 0:
        raise InvalidInput("offset cannot be negative")

    start_date, end_date = _aware(start_date), _aware(end_date)
    filters = {"user_id": str(user_id)}
    if order_type is not None:
        filters["order_type"] = OrderType(order_type).value
    if order_status is not None:
        filters["order_status"] = OrderStatus(order_status).value
    if restaurant_id is not None:
        filters["restaurant_id"] = str(restaurant_id)
    if start_date is not None:
        filters["created_at__gte"] = start_date
    if end_date is not None:
        filters["created_at__lte"] = end_date

    results = (
        current_domain.repository_for(Order)
        ._dao.query.filter(**filters)
        .order_by("-created_at")
        .offset(offset)
        .limit(limit)
        .all()
    )
    return {"orders": results.items, "total_count": results.total}
