"""FastAPI routes for checkout, order lookup and order administration.

Thin adapters that translate HTTP requests into domain commands.
"""

import json

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.admission.limiter import rate_limit_headers
from storefront.audit.entry import AuditAction, AuditSeverity
from storefront.audit.trail import log_security_event
from storefront.config import get_settings
from storefront.errors import RateLimited
from storefront.order.api.schemas import (
    CartAbandonRequest,
    CartAbandonResponse,
    CheckoutRequest,
    CheckoutResponse,
    ConfirmPaymentRequest,
    OrderItemView,
    OrderUpdateResponse,
    OrderView,
    StatusHistoryView,
    UpdateOrderRequest,
)
from storefront.cart.abandonment import TrackCartAbandonment
from storefront.order.checkout import PlaceOrder
from storefront.order.deletion import DeleteOrder
from storefront.order.lookup import find_order_by_number
from storefront.order.payment import ConfirmPayment
from storefront.order.status import UpdateOrderStatus
from storefront.web import admit, client_ip

checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])
order_router = APIRouter(prefix="/orders", tags=["orders"])
admin_order_router = APIRouter(prefix="/admin/orders", tags=["admin"])
cart_router = APIRouter(prefix="/cart", tags=["cart"])

CHECKOUT_LIMITED_MESSAGE = "Too many checkout attempts. Please try again later."


def _actor(request: Request) -> dict:
    return {
        "actor_id": request.headers.get("x-actor-id"),
        "actor_email": request.headers.get("x-actor-email"),
        "ip_address": client_ip(request),
    }


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
@checkout_router.post("", response_model=CheckoutResponse)
async def checkout(body: CheckoutRequest, request: Request, response: Response) -> CheckoutResponse:
    settings = get_settings()
    ip = client_ip(request)

    try:
        decision = admit(
            f"checkout:{ip}",
            settings.CHECKOUT_RATE_LIMIT_MAX,
            settings.CHECKOUT_RATE_LIMIT_WINDOW_MS,
            message=CHECKOUT_LIMITED_MESSAGE,
        )
    except RateLimited:
        log_security_event(
            AuditAction.RATE_LIMIT_EXCEEDED,
            AuditSeverity.WARNING,
            ip_address=ip,
            user_agent=request.headers.get("user-agent"),
            metadata={"endpoint": "checkout"},
        )
        raise

    command = PlaceOrder(
        items=json.dumps([line.model_dump() for line in body.items]),
        shipping_address=json.dumps(body.shipping_address.model_dump() if body.shipping_address else {}),
        ip_address=ip,
    )
    result = current_domain.process(command, asynchronous=False)

    response.headers.update(rate_limit_headers(decision))
    return CheckoutResponse(**result)


# ---------------------------------------------------------------------------
# Guest order lookup
# ---------------------------------------------------------------------------
def _order_view(order) -> OrderView:
    return OrderView(
        order_id=str(order.id),
        order_number=order.order_number,
        status=order.status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        total=order.total,
        currency=order.currency,
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        shipping_address=order.shipping_address.to_dict() if order.shipping_address else None,
        items=[
            OrderItemView(
                product_slug=item.product_slug,
                title=item.title,
                size=item.size,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=item.line_total,
                image=item.image,
                collection=item.collection,
            )
            for item in order.items
        ],
        tracking_number=order.tracking_number,
        carrier=order.carrier,
        status_history=[
            StatusHistoryView(status=entry.status, timestamp=entry.timestamp, note=entry.note)
            for entry in order.history
        ],
        created_at=order.created_at,
        expires_at=order.expires_at,
        is_expired=order.is_expired(),
        revision=order.revision or 0,
    )


@order_router.get("/{order_number}", response_model=OrderView)
async def view_order(order_number: str, request: Request, response: Response, email: str | None = None):
    """Guest order status page; the caller proves ownership with the order email."""
    settings = get_settings()
    decision = admit(
        f"order-view:{client_ip(request)}",
        settings.ORDER_VIEW_RATE_LIMIT_MAX,
        settings.ORDER_VIEW_RATE_LIMIT_WINDOW_MS,
    )
    headers = rate_limit_headers(decision)

    try:
        order = find_order_by_number(order_number)
    except ObjectNotFoundError:
        return JSONResponse(status_code=404, content={"error": "Order not found"}, headers=headers)

    if not email or not order.customer_email or email.strip().lower() != order.customer_email.lower():
        return JSONResponse(status_code=404, content={"error": "Order not found"}, headers=headers)

    response.headers.update(headers)
    return _order_view(order)


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------
@admin_order_router.post("/{order_id}/confirm-payment", response_model=OrderUpdateResponse)
async def confirm_payment(order_id: str, request: Request, body: ConfirmPaymentRequest | None = None):
    body = body or ConfirmPaymentRequest()
    actor = _actor(request)
    command = ConfirmPayment(
        order_id=order_id,
        confirmed_by=body.confirmed_by or actor["actor_email"],
        actor_id=actor["actor_id"],
        expected_revision=body.expected_revision,
        ip_address=actor["ip_address"],
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderUpdateResponse(**result)


@admin_order_router.patch("/{order_id}", response_model=OrderUpdateResponse)
async def update_order(order_id: str, body: UpdateOrderRequest, request: Request):
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        tracking_number=body.tracking_number,
        carrier=body.carrier,
        note=body.note,
        expected_revision=body.expected_revision,
        **_actor(request),
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderUpdateResponse(**result)


@admin_order_router.delete("/{order_id}")
async def delete_order(order_id: str, request: Request):
    command = DeleteOrder(order_id=order_id, **_actor(request))
    current_domain.process(command, asynchronous=False)
    return {"success": True}


# ---------------------------------------------------------------------------
# Cart abandonment
# ---------------------------------------------------------------------------
@cart_router.post("/abandon", response_model=CartAbandonResponse)
async def abandon_cart(body: CartAbandonRequest) -> CartAbandonResponse:
    command = TrackCartAbandonment(
        email=body.email,
        cart_items=json.dumps([line.model_dump() for line in body.cart_items]),
        cart_total=body.cart_total,
        user_id=body.user_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return CartAbandonResponse(**result)
