"""Shared helpers for creating notification intents.

``queue_notification`` is what ledger and catalogue handlers call: render
the template, then stage one PENDING Notification per channel in the
caller's unit of work. Delivery happens after commit.
"""

import json

import structlog
from protean.utils.globals import current_domain

from storefront.config import get_settings
from storefront.notification.notification import Notification
from storefront.notification.templates import get_template

logger = structlog.get_logger(__name__)


def brand_context() -> dict:
    """Store-wide values every template may use."""
    settings = get_settings()
    return {
        "store_name": settings.STORE_NAME,
        "site_url": settings.SITE_URL.rstrip("/"),
        "etransfer_email": settings.ETRANSFER_EMAIL,
        "security_question": settings.ETRANSFER_SECURITY_QUESTION,
        "security_answer": settings.ETRANSFER_SECURITY_ANSWER,
    }


def create_notifications(
    recipient: str,
    notification_type: str,
    context: dict,
    resource_type: str | None = None,
    resource_id: str | None = None,
    scheduled_for=None,
) -> list[str]:
    """Render a template and stage one Notification per default channel.

    Returns:
        List of notification IDs created.
    """
    template_cls = get_template(notification_type)
    full_context = {**brand_context(), **context}
    rendered = template_cls.render(full_context)

    repo = current_domain.repository_for(Notification)
    notification_ids = []

    for channel in template_cls.default_channels:
        notification = Notification.create(
            recipient=recipient,
            notification_type=notification_type,
            channel=channel,
            subject=rendered.get("subject"),
            body=rendered["body"],
            template_name=template_cls.__name__,
            resource_type=resource_type,
            resource_id=resource_id,
            context_data=json.dumps(context, default=str),
            scheduled_for=scheduled_for,
        )
        repo.add(notification)
        notification_ids.append(str(notification.id))

    logger.info(
        "Notifications created",
        recipient=recipient,
        notification_type=notification_type,
        resource_type=resource_type,
        resource_id=resource_id,
        count=len(notification_ids),
    )

    return notification_ids


def queue_notification(
    recipient: str,
    notification_type: str,
    context: dict,
    resource_type: str | None = None,
    resource_id: str | None = None,
    scheduled_for=None,
) -> list[str]:
    """Like ``create_notifications`` but never raises.

    A notification that cannot be staged must not fail the business
    operation that asked for it.
    """
    try:
        return create_notifications(
            recipient,
            notification_type,
            context,
            resource_type=resource_type,
            resource_id=resource_id,
            scheduled_for=scheduled_for,
        )
    except Exception as exc:
        logger.error(
            "Failed to queue notification",
            recipient=recipient,
            notification_type=notification_type,
            resource_type=resource_type,
            resource_id=resource_id,
            error=str(exc),
        )
        return []
