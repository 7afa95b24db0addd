"""Notifications API package."""

from storefront.notification.api.routes import router as maintenance_router

__all__ = ["maintenance_router"]
