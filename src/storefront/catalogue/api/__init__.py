"""Catalogue API package."""

from storefront.catalogue.api.routes import inventory_router, waitlist_router

__all__ = ["waitlist_router", "inventory_router"]
