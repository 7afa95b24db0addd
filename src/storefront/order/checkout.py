"""Checkout — PlaceOrder command and handler.

Prices and titles always come from the catalogue, never from the cart the
browser sent. The order and its payment-instructions notification are
stored in the same unit of work.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import find_product
from storefront.config import get_settings
from storefront.domain import storefront
from storefront.notification.helpers import queue_notification
from storefront.notification.notification import NotificationType
from storefront.order.lookup import order_context
from storefront.order.numbering import next_order_number
from storefront.order.order import Order

logger = structlog.get_logger(__name__)

REQUIRED_ADDRESS_FIELDS = ("name", "email", "street", "city", "province", "postal_code", "country")


@storefront.command(part_of="Order")
class PlaceOrder:
    items = Text()  # JSON: list of {slug, size, quantity}
    shipping_address = Text()  # JSON: address dict
    ip_address = String(max_length=100)


def _load(value):
    return json.loads(value) if isinstance(value, str) else value


def validate_checkout(items, shipping_address) -> None:
    """Raise ``ValidationError`` describing the first problem found."""
    if not items:
        raise ValidationError({"items": ["No items in cart"]})

    for item in items:
        if not item.get("slug") or not item.get("size"):
            raise ValidationError({"items": ["Each item needs a product slug and size"]})
        quantity = item.get("quantity")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise ValidationError({"items": ["Quantity must be at least 1"]})

    if not shipping_address:
        raise ValidationError({"shipping_address": ["Shipping address is required"]})

    for field in REQUIRED_ADDRESS_FIELDS:
        if not str(shipping_address.get(field) or "").strip():
            label = field.replace("_", " ")
            raise ValidationError({"shipping_address": [f"Shipping address {label} is required"]})


def price_items(items) -> list[dict]:
    """Resolve each cart line against the catalogue."""
    priced = []
    for item in items:
        product = find_product(item["slug"])
        priced.append(
            {
                "product_slug": product.slug,
                "title": product.title,
                "size": item["size"],
                "quantity": item["quantity"],
                "unit_price": product.price,
                "image": product.image,
                "collection": product.collection or "Core",
            }
        )
    return priced


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items = _load(command.items) or []
        shipping_address = _load(command.shipping_address) or {}

        validate_checkout(items, shipping_address)
        items_data = price_items(items)

        settings = get_settings()
        address = {key: shipping_address.get(key) for key in (*REQUIRED_ADDRESS_FIELDS, "phone")}

        order = Order.place(
            order_number=next_order_number(),
            items_data=items_data,
            shipping_address=address,
            currency=settings.CURRENCY,
            grace_period_hours=settings.ORDER_EXPIRATION_HOURS,
        )
        current_domain.repository_for(Order).add(order)

        queue_notification(
            recipient=order.customer_email,
            notification_type=NotificationType.PAYMENT_INSTRUCTIONS.value,
            context=order_context(order),
            resource_type="order",
            resource_id=str(order.id),
        )

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total=order.total,
            item_count=len(items_data),
        )
        return {"order_id": str(order.id), "order_number": order.order_number}
