"""Template registry — maps NotificationType to template classes.

Each template knows its default channels and how to render content
from context data.
"""

from storefront.notification.notification import NotificationType
from storefront.notification.templates.cart_recovery import CartRecoveryTemplate
from storefront.notification.templates.delivery_confirmation import (
    DeliveryConfirmationTemplate,
)
from storefront.notification.templates.payment_confirmation import (
    PaymentConfirmationTemplate,
)
from storefront.notification.templates.payment_instructions import (
    PaymentInstructionsTemplate,
)
from storefront.notification.templates.post_purchase import PostPurchaseTemplate
from storefront.notification.templates.restock_alert import RestockAlertTemplate
from storefront.notification.templates.shipping_update import ShippingUpdateTemplate
from storefront.notification.templates.welcome import WelcomeTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationType.PAYMENT_INSTRUCTIONS.value: PaymentInstructionsTemplate,
    NotificationType.PAYMENT_CONFIRMATION.value: PaymentConfirmationTemplate,
    NotificationType.SHIPPING_UPDATE.value: ShippingUpdateTemplate,
    NotificationType.DELIVERY_CONFIRMATION.value: DeliveryConfirmationTemplate,
    NotificationType.RESTOCK_ALERT.value: RestockAlertTemplate,
    NotificationType.CART_RECOVERY.value: CartRecoveryTemplate,
    NotificationType.POST_PURCHASE.value: PostPurchaseTemplate,
    NotificationType.WELCOME.value: WelcomeTemplate,
}


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
