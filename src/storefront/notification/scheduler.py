"""DispatchPendingNotifications command + handler — the outbox sweep.

Invoked by cron through the maintenance API. Delivers PENDING notifications
that are due (including scheduled ones and any whose immediate dispatch
never ran) and retries FAILED ones that still have attempts left. Each
notification is handled on its own so one bad message does not stop the
batch.
"""

from datetime import UTC, datetime

import structlog
from protean.fields import DateTime, Integer
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.notification.dispatch import deliver
from storefront.notification.notification import Notification, NotificationStatus

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Notification")
class DispatchPendingNotifications:
    """Request to deliver due notifications and retry failed ones."""

    as_of = DateTime()  # Optional: defaults to now
    batch_size = Integer(default=100)


@storefront.command_handler(part_of=Notification)
class DispatchPendingNotificationsHandler:
    @handle(DispatchPendingNotifications)
    def dispatch_pending(self, command: DispatchPendingNotifications):
        as_of = command.as_of or datetime.now(UTC)
        batch_size = command.batch_size or 100
        repo = current_domain.repository_for(Notification)

        pending = repo._dao.query.filter(status=NotificationStatus.PENDING.value).all().items
        failed = repo._dao.query.filter(status=NotificationStatus.FAILED.value).all().items

        candidates = [n for n in pending if n.is_due(as_of)] + [n for n in failed if n.can_retry]
        candidates = candidates[:batch_size]

        sent = 0
        failures = 0
        for notification in candidates:
            try:
                if NotificationStatus(notification.status) == NotificationStatus.FAILED:
                    notification.requeue()
                if deliver(notification):
                    sent += 1
                else:
                    failures += 1
                repo.add(notification)
            except Exception as exc:
                failures += 1
                logger.error(
                    "Pending notification could not be processed",
                    notification_id=str(notification.id),
                    error=str(exc),
                )

        logger.info(
            "Pending notifications processed",
            processed=len(candidates),
            sent=sent,
            failed=failures,
            as_of=str(as_of),
        )
        return {"processed": len(candidates), "sent": sent, "failed": failures}
