"""After-commit delivery of newly stored notifications.

``NotificationCreated`` is only handled once the unit of work that stored the
notification has committed, so a delivery problem can never roll back the
order change that caused it. Whatever happens, the attempt is recorded on the
notification and nothing is raised back to the caller.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.notification.channel import get_channel
from storefront.notification.channel.email_port import DeliveryResult, failed
from storefront.notification.events import NotificationCreated
from storefront.notification.notification import (
    Notification,
    NotificationChannel,
    NotificationStatus,
)

logger = structlog.get_logger(__name__)


@storefront.event_handler(part_of=Notification)
class NotificationDispatcher:
    @handle(NotificationCreated)
    def on_notification_created(self, event: NotificationCreated) -> None:
        notification_id = str(event.notification_id)
        if event.scheduled_for is not None:
            logger.debug("notification_deferred", notification_id=notification_id, scheduled_for=event.scheduled_for)
            return

        repo = current_domain.repository_for(Notification)
        try:
            notification = repo.get(event.notification_id)
        except ObjectNotFoundError:
            logger.error("notification_missing_for_dispatch", notification_id=notification_id)
            return

        if notification.status != NotificationStatus.PENDING.value:
            logger.info("notification_already_handled", notification_id=notification_id, status=notification.status)
            return

        deliver(notification)
        repo.add(notification)


def deliver(notification: Notification) -> bool:
    """Make one delivery attempt and record it on ``notification``.

    The caller persists the notification afterwards. Returns True when sent.
    """
    log = logger.bind(notification_id=str(notification.id), notification_type=notification.notification_type)
    try:
        result = _send(notification)
    except Exception as exc:
        log.error("notification_dispatch_error", error=str(exc))
        result = failed(str(exc))

    delivered = notification.record_attempt(result)
    if delivered:
        log.info("notification_sent", recipient=notification.recipient, attempt=notification.attempts)
    else:
        log.warning(
            "notification_not_delivered",
            error=notification.failure_reason,
            attempt=notification.attempts,
            will_retry=notification.can_retry,
        )
    return delivered


def _send(notification: Notification) -> DeliveryResult:
    adapter = get_channel(notification.channel)
    if notification.channel != NotificationChannel.EMAIL.value:
        return failed(f"Unsupported channel: {notification.channel}")
    logger.debug("notification_dispatching", notification_id=str(notification.id), provider=adapter.provider)
    return adapter.send(to=notification.recipient, subject=notification.subject or "", body=notification.body)
