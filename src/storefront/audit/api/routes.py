"""FastAPI routes for reading the audit trail (admin dashboard)."""

import json
from datetime import datetime

from fastapi import APIRouter, Query

from storefront.audit.api.schemas import (
    ActionCount,
    AuditLogListResponse,
    AuditLogResponse,
    AuditStatsResponse,
)
from storefront.audit.trail import search, statistics

router = APIRouter(prefix="/admin/audit-logs", tags=["audit"])


def _to_response(entry) -> AuditLogResponse:
    return AuditLogResponse(
        id=str(entry.id),
        action=entry.action,
        severity=entry.severity,
        user_id=entry.user_id,
        user_email=entry.user_email,
        resource=entry.resource,
        resource_id=entry.resource_id,
        ip_address=entry.ip_address,
        user_agent=entry.user_agent,
        metadata=json.loads(entry.details) if entry.details else None,
        created_at=entry.created_at,
    )


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    user_id: str | None = None,
    user_email: str | None = None,
    action: str | None = None,
    resource: str | None = None,
    severity: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> AuditLogListResponse:
    entries, total = search(
        user_id=user_id,
        user_email=user_email,
        action=action,
        resource=resource,
        severity=severity,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return AuditLogListResponse(
        logs=[_to_response(entry) for entry in entries],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/stats", response_model=AuditStatsResponse)
async def audit_stats(days: int = Query(7, ge=1, le=365)) -> AuditStatsResponse:
    stats = statistics(days=days)
    return AuditStatsResponse(
        total_logs=stats["total_logs"],
        critical_count=stats["critical_count"],
        warning_count=stats["warning_count"],
        recent_actions=[ActionCount(**item) for item in stats["recent_actions"]],
    )
