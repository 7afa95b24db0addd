"""Cart recovery template — sent 24 hours after a cart is abandoned."""

from storefront.notification.notification import (
    NotificationChannel,
    NotificationType,
)
from storefront.utils.currency import format_price


class CartRecoveryTemplate:
    notification_type = NotificationType.CART_RECOVERY.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        currency = context.get("currency", "CAD")
        site_url = context.get("site_url", "")

        item_lines = [
            f"  {item.get('title', 'Item')} (Size: {item.get('size', '-')}, Qty: {item.get('quantity', 1)})"
            for item in context.get("cart_items", [])
        ]
        items = "\n".join(item_lines) or "  Your saved items"

        return {
            "subject": "You left something behind...",
            "body": (
                "We noticed you didn't complete your order. Your items are still waiting for you!\n\n"
                f"{items}\n\n"
                f"Total: {format_price(context.get('cart_total', 0), currency)}\n\n"
                f"Complete your order: {site_url}/cart\n\n"
                f"The {context.get('store_name', '')} Team"
            ),
        }
