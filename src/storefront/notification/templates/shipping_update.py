"""Shipping update template — sent when an order is marked shipped."""

from storefront.notification.notification import (
    NotificationChannel,
    NotificationType,
)


class ShippingUpdateTemplate:
    notification_type = NotificationType.SHIPPING_UPDATE.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        customer_name = context.get("customer_name") or "there"
        carrier = context.get("carrier") or "the carrier"
        tracking_number = context.get("tracking_number") or "N/A"
        return {
            "subject": f"Your Order Has Shipped - #{order_number}",
            "body": (
                f"Hi {customer_name},\n\n"
                f"Great news! Your order #{order_number} has shipped.\n\n"
                f"Carrier: {carrier}\n"
                f"Tracking Number: {tracking_number}\n\n"
                "You can track your package using the tracking number above."
            ),
        }
