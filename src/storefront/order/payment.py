"""Payment confirmation — an administrator marks the e-transfer as received."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.notification.helpers import queue_notification
from storefront.notification.notification import NotificationType
from storefront.order.lookup import find_order, order_context
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class ConfirmPayment:
    order_id = Identifier(required=True)
    confirmed_by = String(max_length=255)
    actor_id = String(max_length=100)
    expected_revision = Integer()
    ip_address = String(max_length=100)


@storefront.command_handler(part_of=Order)
class ConfirmPaymentHandler:
    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        order = find_order(command.order_id)
        order.check_revision(command.expected_revision)
        order.confirm_payment(
            confirmed_by=command.confirmed_by,
            actor_id=command.actor_id,
            ip_address=command.ip_address,
        )

        current_domain.repository_for(Order).add(order)

        queue_notification(
            recipient=order.customer_email,
            notification_type=NotificationType.PAYMENT_CONFIRMATION.value,
            context=order_context(order),
            resource_type="order",
            resource_id=str(order.id),
        )

        logger.info(
            "Payment confirmed",
            order_id=str(order.id),
            order_number=order.order_number,
            confirmed_by=command.confirmed_by,
        )
        return {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "status": order.status,
            "payment_status": order.payment_status,
            "revision": order.revision,
        }
