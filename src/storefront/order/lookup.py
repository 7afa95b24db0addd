"""Order lookups and the customer-facing context used by order emails."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.order.order import Order


def find_order(order_id) -> Order:
    """Load an order by id; raises ``ObjectNotFoundError`` when missing."""
    return current_domain.repository_for(Order).get(order_id)


def find_order_by_number(order_number) -> Order:
    results = current_domain.repository_for(Order)._dao.query.filter(order_number=order_number).all().items
    if not results:
        raise ObjectNotFoundError({"order_number": ["Order not found"]})
    return results[0]


def order_context(order: Order) -> dict:
    """Template context describing ``order`` for customer emails."""
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "total": order.total,
        "currency": order.currency,
        "expires_at": order.expires_at.strftime("%B %d, %Y %H:%M UTC") if order.expires_at else None,
        "tracking_number": order.tracking_number,
        "carrier": order.carrier,
        "items": [
            {
                "product_slug": item.product_slug,
                "title": item.title,
                "size": item.size,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
            }
            for item in order.items
        ],
    }
