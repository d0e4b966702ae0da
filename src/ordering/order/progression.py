"""Restaurant-side status progression: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus
from ordering.order.queries import get_order


@ordering.command(part_of="Order")
class AdvanceOrderStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, choices=OrderStatus)
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class AdvanceOrderStatusHandler:
    @handle(AdvanceOrderStatus)
    def advance_order_status(self, command):
        order = get_order(command.order_id)
        order.advance_to(command.new_status, reason=command.reason)
        current_domain.repository_for(Order).add(order)
        return order.to_dict()
