"""Administrative order edits — status, tracking details and cancellation."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.notification.helpers import queue_notification
from storefront.notification.notification import NotificationType
from storefront.order.lookup import find_order, order_context
from storefront.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(max_length=50)
    tracking_number = String(max_length=255)
    carrier = String(max_length=100)
    note = Text()
    actor_id = String(max_length=100)
    actor_email = String(max_length=255)
    expected_revision = Integer()
    ip_address = String(max_length=100)


def _customer_notice(order: Order, previous: OrderStatus, previous_tracking) -> str | None:
    """Which customer email, if any, this edit calls for."""
    current = OrderStatus(order.status)
    if current == OrderStatus.SHIPPED and order.tracking_number and order.carrier:
        if previous != OrderStatus.SHIPPED or order.tracking_number != previous_tracking:
            return NotificationType.SHIPPING_UPDATE.value
    if current == OrderStatus.DELIVERED and previous != OrderStatus.DELIVERED:
        return NotificationType.DELIVERY_CONFIRMATION.value
    return None


@storefront.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        order = find_order(command.order_id)
        order.check_revision(command.expected_revision)

        previous_tracking = order.tracking_number
        previous = order.update_status(
            new_status=command.status,
            tracking_number=command.tracking_number,
            carrier=command.carrier,
            note=command.note,
            changed_by=command.actor_email,
            actor_id=command.actor_id,
            ip_address=command.ip_address,
        )
        current_domain.repository_for(Order).add(order)

        notice = _customer_notice(order, previous, previous_tracking)
        if notice:
            queue_notification(
                recipient=order.customer_email,
                notification_type=notice,
                context=order_context(order),
                resource_type="order",
                resource_id=str(order.id),
            )

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            previous_status=previous.value,
            new_status=order.status,
        )
        return {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "status": order.status,
            "tracking_number": order.tracking_number,
            "carrier": order.carrier,
            "revision": order.revision,
        }
