"""Pydantic response models for the audit log API."""

from datetime import datetime

from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    id: str
    action: str
    severity: str
    user_id: str | None = None
    user_email: str | None = None
    resource: str | None = None
    resource_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    metadata: dict | None = None
    created_at: datetime | None = None


class AuditLogListResponse(BaseModel):
    logs: list[AuditLogResponse]
    total: int
    limit: int
    offset: int


class ActionCount(BaseModel):
    action: str
    count: int


class AuditStatsResponse(BaseModel):
    total_logs: int
    critical_count: int
    warning_count: int
    recent_actions: list[ActionCount]
