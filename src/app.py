"""Storefront FastAPI application.

Web server that processes commands synchronously via HTTP. Every request
runs inside the storefront domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.domain import storefront
from storefront.utils.logging import bind_request, configure_logging

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - unset        → event_processing = "sync"  (handlers fire after commit)
#   - "production" → event_processing = "async" (handlers fire via Engine)
configure_logging()
storefront.init()

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Checkout, order ledger, audit trail and customer notifications",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context and bind request details to the log."""
    bind_request(request.headers.get("x-request-id") or str(uuid.uuid4()), request.url.path, method=request.method)
    with storefront.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------
from storefront.web import register_error_handlers  # noqa: E402

register_error_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.audit.api import audit_router  # noqa: E402
from storefront.catalogue.api import inventory_router, waitlist_router  # noqa: E402
from storefront.notification.api import maintenance_router  # noqa: E402
from storefront.order.api import (  # noqa: E402
    admin_order_router,
    cart_router,
    checkout_router,
    order_router,
)

app.include_router(checkout_router)
app.include_router(order_router)
app.include_router(admin_order_router)
app.include_router(cart_router)
app.include_router(waitlist_router)
app.include_router(inventory_router)
app.include_router(audit_router)
app.include_router(maintenance_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": storefront.name})
