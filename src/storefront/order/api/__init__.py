"""Ordering API package."""

from storefront.order.api.routes import (
    admin_order_router,
    cart_router,
    checkout_router,
    order_router,
)

__all__ = ["checkout_router", "order_router", "admin_order_router", "cart_router"]
