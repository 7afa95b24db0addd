"""Payment confirmation template — sent when an admin confirms the e-transfer."""

from storefront.notification.notification import (
    NotificationChannel,
    NotificationType,
)
from storefront.utils.currency import format_price


class PaymentConfirmationTemplate:
    notification_type = NotificationType.PAYMENT_CONFIRMATION.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        customer_name = context.get("customer_name") or "there"
        total = format_price(context.get("total", 0), context.get("currency", "CAD"))
        site_url = context.get("site_url", "")
        return {
            "subject": f"Payment Confirmed - Order {order_number}",
            "body": (
                f"Hi {customer_name},\n\n"
                f"We've received your payment of {total} for order {order_number}.\n\n"
                "Your order is now being processed. We'll email you tracking "
                "details as soon as it ships.\n\n"
                f"View your order: {site_url}/orders/{order_number}\n\n"
                f"The {context.get('store_name', '')} Team"
            ),
        }
