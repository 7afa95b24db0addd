"""Audit trail — best-effort writes plus the admin read path.

``record`` never raises: a failure to build or write an entry is logged and
the caller carries on. Inside a handler the entry joins the handler's unit
of work; outside one it is committed immediately. Payment confirmations and
status edits are audited from the order's events once the change itself has
committed (``storefront.audit.order_events``).
"""

from collections import Counter
from datetime import UTC, datetime, timedelta

import structlog
from protean.utils.globals import current_domain

from storefront.audit.entry import AuditAction, AuditLogEntry, AuditSeverity

logger = structlog.get_logger(__name__)

_SCAN_LIMIT = 10_000


def _value(member):
    return member.value if isinstance(member, AuditAction | AuditSeverity) else member


def _as_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)


def _write(entry: AuditLogEntry) -> None:
    current_domain.repository_for(AuditLogEntry).add(entry)


def record(
    action,
    severity=AuditSeverity.INFO,
    user_id=None,
    user_email=None,
    resource=None,
    resource_id=None,
    ip_address=None,
    user_agent=None,
    metadata=None,
) -> str | None:
    """Append an audit entry. Returns its id, or None if it could not be written."""
    try:
        entry = AuditLogEntry.create(
            action=_value(action),
            severity=_value(severity),
            user_id=user_id,
            user_email=user_email,
            resource=resource,
            resource_id=resource_id,
            ip_address=ip_address,
            user_agent=user_agent,
            metadata=metadata,
        )
        _write(entry)
    except Exception as exc:
        logger.error(
            "Failed to create audit log",
            action=_value(action),
            resource=resource,
            resource_id=resource_id,
            error=str(exc),
        )
        return None

    logger.debug(
        "Audit entry recorded",
        action=entry.action,
        user=user_email or user_id,
        resource=resource,
        resource_id=resource_id,
    )
    return str(entry.id)


def log_auth_event(action, email, success, ip_address=None, user_agent=None, metadata=None):
    """Authentication outcome; failures are recorded as warnings."""
    return record(
        action,
        severity=AuditSeverity.INFO if success else AuditSeverity.WARNING,
        user_email=email,
        ip_address=ip_address,
        user_agent=user_agent,
        metadata=metadata,
    )


def log_admin_action(
    action,
    user_id=None,
    user_email=None,
    resource=None,
    resource_id=None,
    ip_address=None,
    user_agent=None,
    metadata=None,
    severity=AuditSeverity.INFO,
):
    """Administrative change to a product, order or user."""
    return record(
        action,
        severity=severity,
        user_id=user_id,
        user_email=user_email,
        resource=resource,
        resource_id=resource_id,
        ip_address=ip_address,
        user_agent=user_agent,
        metadata=metadata,
    )


def log_security_event(action, severity, ip_address=None, user_agent=None, metadata=None):
    """Suspicious activity, rate limiting and similar events."""
    return record(
        action,
        severity=severity,
        ip_address=ip_address,
        user_agent=user_agent,
        metadata=metadata,
    )


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------
def _all_entries(**criteria) -> list[AuditLogEntry]:
    repo = current_domain.repository_for(AuditLogEntry)
    return repo._dao.query.filter(**criteria).limit(_SCAN_LIMIT).all().items


def search(
    user_id=None,
    user_email=None,
    action=None,
    resource=None,
    severity=None,
    start_date=None,
    end_date=None,
    limit=50,
    offset=0,
):
    """Filtered audit entries, newest first.

    Returns:
        ``(entries, total)`` where ``total`` counts every match before paging.
    """
    criteria = {}
    if user_id:
        criteria["user_id"] = user_id
    if action:
        criteria["action"] = _value(action)
    if resource:
        criteria["resource"] = resource
    if severity:
        criteria["severity"] = _value(severity)

    entries = _all_entries(**criteria)

    if user_email:
        needle = user_email.lower()
        entries = [e for e in entries if e.user_email and needle in e.user_email.lower()]
    if start_date:
        start = _as_utc(start_date)
        entries = [e for e in entries if e.created_at and _as_utc(e.created_at) >= start]
    if end_date:
        end = _as_utc(end_date)
        entries = [e for e in entries if e.created_at and _as_utc(e.created_at) <= end]

    entries.sort(key=lambda e: _as_utc(e.created_at), reverse=True)

    total = len(entries)
    return entries[offset : offset + limit], total


def statistics(days=7, now=None):
    """Totals for the admin dashboard over the last ``days`` days."""
    now = now or datetime.now(UTC)
    start = _as_utc(now) - timedelta(days=days)

    entries = [e for e in _all_entries() if e.created_at and _as_utc(e.created_at) >= start]
    severities = Counter(e.severity for e in entries)
    actions = Counter(e.action for e in entries)

    return {
        "total_logs": len(entries),
        "critical_count": severities.get(AuditSeverity.CRITICAL.value, 0),
        "warning_count": severities.get(AuditSeverity.WARNING.value, 0),
        "recent_actions": [{"action": action, "count": count} for action, count in actions.most_common(10)],
    }
