"""Welcome notification template — sent when a customer registers."""

from storefront.notification.notification import (
    NotificationChannel,
    NotificationType,
)


class WelcomeTemplate:
    notification_type = NotificationType.WELCOME.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        name = context.get("name")
        store_name = context.get("store_name", "")
        site_url = context.get("site_url", "")
        return {
            "subject": f"Welcome to {store_name}",
            "body": (
                f"Welcome{', ' + name if name else ''}!\n\n"
                f"Thanks for joining {store_name}. We're excited to have you here.\n\n"
                f"Start shopping: {site_url}/shop\n\n"
                "Questions? Just reply to this email."
            ),
        }
