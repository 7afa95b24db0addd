"""Maintenance endpoints invoked by cron — email automation and the outbox sweep.

When ``CRON_SECRET`` is configured callers must send
``Authorization: Bearer <CRON_SECRET>``.
"""

from fastapi import APIRouter, Depends, Header, HTTPException
from protean.utils.globals import current_domain

from storefront.config import get_settings
from storefront.notification.automation import (
    ProcessCartAbandonments,
    ProcessPostPurchaseFollowUps,
)
from storefront.notification.scheduler import DispatchPendingNotifications

AUTOMATION_TYPES = ("cart_abandonment", "post_purchase", "all")


def verify_cron_secret(authorization: str | None = Header(None)) -> None:
    secret = get_settings().CRON_SECRET
    if secret and authorization != f"Bearer {secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")


router = APIRouter(prefix="/maintenance", tags=["maintenance"], dependencies=[Depends(verify_cron_secret)])


@router.post("/email-automation")
async def run_email_automation(type: str | None = None):
    """Run one or both automation sweeps (``type`` omitted means all)."""
    automation = type or "all"
    if automation not in AUTOMATION_TYPES:
        raise HTTPException(status_code=400, detail="Invalid automation type")

    if automation == "cart_abandonment":
        result = current_domain.process(ProcessCartAbandonments(), asynchronous=False)
        return {"success": True, "type": automation, **result}

    if automation == "post_purchase":
        result = current_domain.process(ProcessPostPurchaseFollowUps(), asynchronous=False)
        return {"success": True, "type": automation, **result}

    return {
        "success": True,
        "cart_abandonment": current_domain.process(ProcessCartAbandonments(), asynchronous=False),
        "post_purchase": current_domain.process(ProcessPostPurchaseFollowUps(), asynchronous=False),
    }


@router.post("/notifications/dispatch")
async def dispatch_pending_notifications():
    """Deliver due notifications and retry failed ones."""
    result = current_domain.process(DispatchPendingNotifications(), asynchronous=False)
    return {"success": True, **result}
