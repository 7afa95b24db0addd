"""Order deletion — admin-only, audited before the record disappears."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.audit.entry import AuditAction, AuditSeverity
from storefront.audit.trail import log_admin_action
from storefront.domain import storefront
from storefront.order.lookup import find_order
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class DeleteOrder:
    order_id = Identifier(required=True)
    actor_id = String(max_length=100)
    actor_email = String(max_length=255)
    ip_address = String(max_length=100)


@storefront.command_handler(part_of=Order)
class DeleteOrderHandler:
    @handle(DeleteOrder)
    def delete_order(self, command):
        order = find_order(command.order_id)

        log_admin_action(
            AuditAction.ORDER_DELETED,
            user_id=command.actor_id,
            user_email=command.actor_email,
            resource="order",
            resource_id=str(order.id),
            ip_address=command.ip_address,
            metadata={
                "order_number": order.order_number,
                "status": order.status,
                "total": order.total,
                "customer_email": order.customer_email,
            },
            severity=AuditSeverity.CRITICAL,
        )

        current_domain.repository_for(Order)._dao.delete(order)

        logger.warning("Order deleted", order_id=str(order.id), order_number=order.order_number)
        return {"order_id": str(order.id), "order_number": order.order_number}
