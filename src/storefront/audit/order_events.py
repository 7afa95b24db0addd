"""Audit entries for administrative order changes.

Written from the order's own events, which are only handled once the change
has been committed, so a failed audit write can never undo it.
"""

from protean.utils.mixins import handle

from storefront.audit.entry import AuditAction
from storefront.audit.trail import log_admin_action
from storefront.domain import storefront
from storefront.order.events import OrderPaymentConfirmed, OrderStatusChanged
from storefront.order.order import Order, OrderStatus

ORDER_RESOURCE = "order"


@storefront.event_handler(part_of=Order)
class OrderAuditRecorder:
    @handle(OrderPaymentConfirmed)
    def on_payment_confirmed(self, event: OrderPaymentConfirmed) -> None:
        log_admin_action(
            AuditAction.ORDER_PAYMENT_CONFIRMED,
            user_id=event.actor_id,
            user_email=event.confirmed_by,
            resource=ORDER_RESOURCE,
            resource_id=str(event.order_id),
            ip_address=event.ip_address,
            metadata={"order_number": event.order_number, "total": event.total},
        )

    @handle(OrderStatusChanged)
    def on_status_changed(self, event: OrderStatusChanged) -> None:
        cancelled = (
            event.new_status == OrderStatus.CANCELLED.value and event.previous_status != OrderStatus.CANCELLED.value
        )
        log_admin_action(
            AuditAction.ORDER_CANCELLED if cancelled else AuditAction.ORDER_STATUS_CHANGED,
            user_id=event.actor_id,
            user_email=event.changed_by,
            resource=ORDER_RESOURCE,
            resource_id=str(event.order_id),
            ip_address=event.ip_address,
            metadata={
                "order_number": event.order_number,
                "previous_status": event.previous_status,
                "new_status": event.new_status,
                "override": event.override,
                "tracking_number": event.tracking_number,
                "carrier": event.carrier,
            },
        )
