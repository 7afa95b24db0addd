"""Audit API package."""

from storefront.audit.api.routes import router as audit_router

__all__ = ["audit_router"]
