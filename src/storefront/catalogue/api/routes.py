"""FastAPI routes for stock levels and the restock waitlist."""

import json

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from storefront.catalogue.api.schemas import (
    AdjustInventoryRequest,
    AdjustInventoryResponse,
    InventoryResponse,
    StockNotificationRequest,
    StockNotificationResponse,
    UpdateInventoryRequest,
)
from storefront.catalogue.inventory import AdjustInventory, UpdateInventory
from storefront.catalogue.waitlist import JoinRestockWaitlist
from storefront.web import client_ip

waitlist_router = APIRouter(prefix="/stock-notifications", tags=["waitlist"])
inventory_router = APIRouter(prefix="/admin/inventory", tags=["admin"])

ALREADY_SUBSCRIBED_MESSAGE = "You are already on the waitlist for this item"
SUBSCRIBED_MESSAGE = "You will be notified when this item is back in stock"


@waitlist_router.post("", status_code=201, response_model=StockNotificationResponse)
async def join_waitlist(body: StockNotificationRequest):
    command = JoinRestockWaitlist(
        email=body.email,
        product_slug=body.product_slug,
        size=body.size,
        user_id=body.user_id,
    )
    result = current_domain.process(command, asynchronous=False)

    if not result["created"]:
        return JSONResponse(
            status_code=200,
            content={"message": ALREADY_SUBSCRIBED_MESSAGE, "subscription_id": result["subscription_id"]},
        )
    return {"message": SUBSCRIBED_MESSAGE, "subscription_id": result["subscription_id"]}


@inventory_router.put("/{product_slug}", response_model=InventoryResponse)
async def update_inventory(product_slug: str, body: UpdateInventoryRequest, request: Request) -> InventoryResponse:
    command = UpdateInventory(
        product_slug=product_slug,
        size_quantities=json.dumps(body.size_quantities),
        actor_id=request.headers.get("x-actor-id"),
        actor_email=request.headers.get("x-actor-email"),
        ip_address=client_ip(request),
    )
    result = current_domain.process(command, asynchronous=False)
    return InventoryResponse(product_slug=product_slug, size_quantities=result)


@inventory_router.post("/{product_slug}/adjust", response_model=AdjustInventoryResponse)
async def adjust_inventory(
    product_slug: str, body: AdjustInventoryRequest, request: Request
) -> AdjustInventoryResponse:
    command = AdjustInventory(
        product_slug=product_slug,
        size=body.size,
        adjustment=body.adjustment,
        reason=body.reason,
        actor_id=request.headers.get("x-actor-id"),
        actor_email=request.headers.get("x-actor-email"),
        ip_address=client_ip(request),
    )
    result = current_domain.process(command, asynchronous=False)
    return AdjustInventoryResponse(**result)
