"""Payment instructions template — sent when checkout creates an order."""

from storefront.notification.notification import (
    NotificationChannel,
    NotificationType,
)
from storefront.utils.currency import format_price


class PaymentInstructionsTemplate:
    notification_type = NotificationType.PAYMENT_INSTRUCTIONS.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        customer_name = context.get("customer_name") or "there"
        currency = context.get("currency", "CAD")
        total = format_price(context.get("total", 0), currency)
        etransfer_email = context.get("etransfer_email", "")
        store_name = context.get("store_name", "")
        site_url = context.get("site_url", "")

        lines = [
            f"Hi {customer_name},",
            "",
            "Your order has been received! To complete your purchase, "
            "please send an e-transfer with the details below.",
            "",
            f"Amount: {total}",
            f"Send To: {etransfer_email}",
            f"Order Number: {order_number}",
        ]
        if context.get("security_question"):
            lines.append(f"Security Question: {context['security_question']}")
            lines.append(f"Security Answer: {context.get('security_answer', '')}")

        lines += [
            "",
            f"Please include your order number {order_number} in the e-transfer message "
            "so we can identify your payment.",
            "",
            "Order Details:",
        ]
        for item in context.get("items", []):
            lines.append(
                f"  {item['title']} ({item['size']}) x {item['quantity']}: "
                f"{format_price(item['unit_price'] * item['quantity'], currency)}"
            )

        lines += [
            "",
            f"Payment Deadline: {context.get('expires_at', 'N/A')}",
            "Your order will be cancelled if payment is not received by this time.",
            "",
            f"View your order: {site_url}/orders/{order_number}",
            "",
            f"The {store_name} Team",
        ]

        return {
            "subject": f"Payment Instructions - Order {order_number}",
            "body": "\n".join(lines),
        }
