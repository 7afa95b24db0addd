"""Delivery confirmation template — sent when an order is marked delivered."""

from storefront.notification.notification import (
    NotificationChannel,
    NotificationType,
)


class DeliveryConfirmationTemplate:
    notification_type = NotificationType.DELIVERY_CONFIRMATION.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        customer_name = context.get("customer_name") or "there"
        return {
            "subject": f"Your Order Has Been Delivered - #{order_number}",
            "body": (
                f"Hi {customer_name},\n\n"
                f"Your order #{order_number} has been delivered. We hope you love it!\n\n"
                "Questions about your order? Just reply to this email.\n\n"
                f"The {context.get('store_name', '')} Team"
            ),
        }
