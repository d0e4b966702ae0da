"""Order confirmation template: sent once an order is committed."""


class OrderConfirmationTemplate:
    notification_type = "order_confirmation"

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        restaurant_name = context.get("restaurant_name", "the restaurant")
        order_type = context.get("order_type", "delivery")
        grand_total = context.get("grand_total", "0.00")
        currency = context.get("currency", "USD")
        eta = context.get("estimated_time")

        lines = [
            f"Thanks for ordering from {restaurant_name}!",
            "",
            f"Order #{order_id} ({order_type}) has been received.",
        ]
        for item in context.get("items", []):
            lines.append(f"  {item['quantity']} x {item['item_name']}  {currency} {item['item_total_price']:.2f}")
        lines += ["", f"Order Total: {currency} {grand_total}"]
        if eta:
            label = "Estimated delivery" if order_type == "delivery" else "Ready for pickup around"
            lines.append(f"{label}: {eta}")

        return {
            "subject": f"Order Confirmation - Order #{order_id}",
            "body": "\n".join(lines),
        }
