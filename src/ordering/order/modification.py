"""Post-placement order edits: tip and special instructions."""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import NoUpdates
from ordering.order.order import Order
from ordering.order.queries import get_order


@ordering.command(part_of="Order")
class UpdateOrderDetails:
    """Change the tip and/or special instructions of an undelivered order."""

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    tip = Float(min_value=0.0)
    special_instructions = String(max_length=1000)


@ordering.command_handler(part_of=Order)
class UpdateOrderDetailsHandler:
    @handle(UpdateOrderDetails)
    def update_order_details(self, command):
        if command.tip is None and command.special_instructions is None:
            raise NoUpdates()

        order = get_order(command.order_id, command.user_id)
        order.update_details(tip=command.tip, special_instructions=command.special_instructions)
        current_domain.repository_for(Order).add(order)
        return order.to_dict()
