"""Post-purchase follow-up template — sent a week after delivery."""

from storefront.notification.notification import (
    NotificationChannel,
    NotificationType,
)


class PostPurchaseTemplate:
    notification_type = NotificationType.POST_PURCHASE.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        customer_name = context.get("customer_name")
        store_name = context.get("store_name", "")
        site_url = context.get("site_url", "")
        product_slugs = ",".join(context.get("product_slugs", []))
        greeting = f"Hey {customer_name}!" if customer_name else "Hey!"
        return {
            "subject": f"How's your {store_name} order? Share your thoughts!",
            "body": (
                f"{greeting}\n\n"
                "It's been a week since your order arrived. We'd love to hear what you think!\n\n"
                "Your feedback helps us improve and helps other customers decide.\n\n"
                f"Leave a review: {site_url}/product/{product_slugs}?review=true\n\n"
                f"The {store_name} Team"
            ),
        }
