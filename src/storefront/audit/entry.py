"""AuditLogEntry aggregate — one append-only record of a security-relevant action."""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, String, Text

from storefront.domain import storefront


class AuditAction(Enum):
    # Authentication
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"
    REGISTER = "register"
    PASSWORD_RESET = "password_reset"
    PASSWORD_CHANGED = "password_changed"
    TWO_FACTOR_ENABLED = "two_factor_enabled"
    TWO_FACTOR_DISABLED = "two_factor_disabled"
    TWO_FACTOR_SETUP_INITIATED = "two_factor_setup_initiated"
    TWO_FACTOR_VERIFICATION_FAILED = "two_factor_verification_failed"
    TWO_FACTOR_DISABLE_FAILED = "two_factor_disable_failed"

    # User management
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    USER_ROLE_CHANGED = "user_role_changed"
    ACCOUNT_DELETED = "account_deleted"

    # Products
    PRODUCT_CREATED = "product_created"
    PRODUCT_UPDATED = "product_updated"
    PRODUCT_DELETED = "product_deleted"
    INVENTORY_UPDATED = "inventory_updated"

    # Orders
    ORDER_CREATED = "order_created"
    ORDER_UPDATED = "order_updated"
    ORDER_STATUS_CHANGED = "order_status_changed"
    ORDER_PAYMENT_CONFIRMED = "order_payment_confirmed"
    ORDER_CANCELLED = "order_cancelled"
    ORDER_DELETED = "order_deleted"

    # Collections
    COLLECTION_CREATED = "collection_created"
    COLLECTION_UPDATED = "collection_updated"
    COLLECTION_DELETED = "collection_deleted"

    # Site content
    SITE_CONTENT_UPDATED = "site_content_updated"
    SITE_IMAGE_UPDATED = "site_image_updated"

    # Email
    EMAIL_TEMPLATE_UPDATED = "email_template_updated"
    EMAIL_CAMPAIGN_SENT = "email_campaign_sent"

    # Security
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    SUSPICIOUS_ACTIVITY = "suspicious_activity"
    ACCOUNT_LOCKED = "account_locked"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"


class AuditSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@storefront.aggregate
class AuditLogEntry:
    """Who did what to which resource, and from where.

    Entries are only ever created. Nothing in the application updates or
    deletes them.
    """

    action: String(choices=AuditAction, required=True)
    severity: String(choices=AuditSeverity, default=AuditSeverity.INFO.value)

    user_id: String(max_length=100)
    user_email: String(max_length=255)

    resource: String(max_length=100)
    resource_id: String(max_length=200)

    ip_address: String(max_length=100)
    user_agent: String(max_length=500)

    details: Text()  # JSON metadata

    created_at: DateTime()

    @classmethod
    def create(
        cls,
        action,
        severity=AuditSeverity.INFO.value,
        user_id=None,
        user_email=None,
        resource=None,
        resource_id=None,
        ip_address=None,
        user_agent=None,
        metadata=None,
    ):
        return cls(
            action=action,
            severity=severity,
            user_id=user_id,
            user_email=user_email,
            resource=resource,
            resource_id=resource_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details=json.dumps(metadata, default=str) if metadata is not None else None,
            created_at=datetime.now(UTC),
        )
