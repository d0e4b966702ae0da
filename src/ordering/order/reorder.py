"""Rebuild a user's cart from one of their past orders.

Lines are re-priced against today's menu. Items that were removed or are
unavailable are skipped and reported back instead of failing the reorder.
"""

import json


from ordering.cart.cart import Cart
from ordering.cart.service import CartService
from ordering.errors import InvalidInput, ItemNotFound, ItemUnavailable
from ordering.order.queries import get_order
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


def reorder(user_id, order_id, service: CartService | None = None) -> dict:
    service = service or CartService()
    order = get_order(order_id, user_id)

    service.replace(user_id, Cart())
    skipped = []
    for item in order.items:
        try:
            service.add_item(
                user_id,
                item.menu_item_id,
                quantity=item.quantity,
                size=item.size,
                addons=[a["name"] for a in json.loads(item.addons or "[]")],
                modifications=json.loads(item.modifications or "[]"),
                special_instructions=item.special_instructions,
            )
        except (ItemNotFound, ItemUnavailable, InvalidInput) as exc:
            skipped.append({"menu_item_id": str(item.menu_item_id), "item_name": item.item_name, "reason": exc.code})

    if skipped:
        logger.info("reorder_items_skipped", order_id=str(order.id), user_id=str(user_id), skipped=len(skipped))
    return {"cart": service.get(user_id), "skipped_items": skipped}
