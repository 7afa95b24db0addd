"""Restock alert template — sent to waitlist subscribers when a size returns."""

from storefront.notification.notification import (
    NotificationChannel,
    NotificationType,
)


class RestockAlertTemplate:
    notification_type = NotificationType.RESTOCK_ALERT.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        product_title = context.get("product_title", "An item you wanted")
        size = context.get("size", "")
        product_slug = context.get("product_slug", "")
        site_url = context.get("site_url", "")
        return {
            "subject": f"{product_title} in {size} is Back in Stock!",
            "body": (
                "Good news! The item you've been waiting for is back in stock.\n\n"
                f"{product_title}\n"
                f"Size: {size}\n\n"
                "Sizes sell fast, so grab yours before it's gone again:\n"
                f"{site_url}/product/{product_slug}\n\n"
                "You're receiving this because you joined the waitlist for this item."
            ),
        }
