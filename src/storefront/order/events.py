"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A checkout produced a new order awaiting payment."""

    __version__ = 1

    order_id: Identifier(required=True)
    order_number: String(required=True)
    customer_email: String(required=True)
    total: Integer(required=True)
    currency: String(required=True)
    item_count: Integer(required=True)
    expires_at: DateTime(required=True)
    placed_at: DateTime(required=True)


@storefront.event(part_of="Order")
class OrderPaymentConfirmed:
    """An administrator confirmed the e-transfer for an order."""

    __version__ = 1

    order_id: Identifier(required=True)
    order_number: String(required=True)
    customer_email: String(required=True)
    total: Integer(required=True)
    confirmed_by: String()
    actor_id: String()
    ip_address: String()
    confirmed_at: DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    """An administrator edited an order's status or tracking details."""

    __version__ = 1

    order_id: Identifier(required=True)
    order_number: String(required=True)
    previous_status: String(required=True)
    new_status: String(required=True)
    override: Boolean(default=False)
    tracking_number: String()
    carrier: String()
    note: Text()
    changed_by: String()
    actor_id: String()
    ip_address: String()
    changed_at: DateTime(required=True)
