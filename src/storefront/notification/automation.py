"""Email automation sweeps — cart recovery and post-purchase follow-ups.

Both run from cron through the maintenance API and work in batches of 50.
A sweep only queues notifications; delivery goes through the outbox like
every other message.
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.notification.helpers import queue_notification
from storefront.notification.notification import Notification, NotificationType
from storefront.cart.abandonment import CartAbandonment
from storefront.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)

BATCH_SIZE = 50

# Carts abandoned between one and two days ago get a reminder
CART_REMINDER_MIN_AGE = timedelta(hours=24)
CART_REMINDER_MAX_AGE = timedelta(hours=48)

# Orders delivered between seven and eight days ago get a follow-up
FOLLOW_UP_MIN_AGE = timedelta(days=7)
FOLLOW_UP_MAX_AGE = timedelta(days=8)


def _as_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)


def _within(dt, as_of, min_age, max_age) -> bool:
    if dt is None:
        return False
    dt = _as_utc(dt)
    return as_of - max_age <= dt <= as_of - min_age


@storefront.command(part_of="Notification")
class ProcessCartAbandonments:
    as_of = DateTime()  # Optional: defaults to now
    batch_size = Integer(default=BATCH_SIZE)


@storefront.command(part_of="Notification")
class ProcessPostPurchaseFollowUps:
    as_of = DateTime()  # Optional: defaults to now
    batch_size = Integer(default=BATCH_SIZE)


@storefront.command(part_of="Notification")
class SendWelcomeNotification:
    email = String(required=True, max_length=255)
    name = String(max_length=255)
    user_id = Identifier()


def _already_followed_up(order_id: str) -> bool:
    repo = current_domain.repository_for(Notification)
    existing = (
        repo._dao.query.filter(
            notification_type=NotificationType.POST_PURCHASE.value,
            resource_id=order_id,
        )
        .all()
        .items
    )
    return bool(existing)


@storefront.command_handler(part_of=Notification)
class EmailAutomationHandler:
    @handle(ProcessCartAbandonments)
    def process_cart_abandonments(self, command):
        as_of = _as_utc(command.as_of or datetime.now(UTC))
        batch_size = command.batch_size or BATCH_SIZE
        repo = current_domain.repository_for(CartAbandonment)

        candidates = repo._dao.query.filter(reminder_sent=False, recovered=False).all().items
        due = sorted(
            (a for a in candidates if _within(a.created_at, as_of, CART_REMINDER_MIN_AGE, CART_REMINDER_MAX_AGE)),
            key=lambda a: _as_utc(a.created_at),
        )[:batch_size]

        queued = 0
        for abandonment in due:
            ids = queue_notification(
                recipient=abandonment.email,
                notification_type=NotificationType.CART_RECOVERY.value,
                context={
                    "cart_items": abandonment.items,
                    "cart_total": abandonment.cart_total,
                },
                resource_type="cart_abandonment",
                resource_id=str(abandonment.id),
            )
            if not ids:
                continue
            abandonment.mark_reminder_sent(now=as_of)
            repo.add(abandonment)
            queued += 1

        logger.info("Cart abandonment emails queued", found=len(due), queued=queued)
        return {"processed": len(due), "queued": queued}

    @handle(ProcessPostPurchaseFollowUps)
    def process_post_purchase(self, command):
        as_of = _as_utc(command.as_of or datetime.now(UTC))
        batch_size = command.batch_size or BATCH_SIZE
        repo = current_domain.repository_for(Order)

        delivered = repo._dao.query.filter(status=OrderStatus.DELIVERED.value).all().items
        due = sorted(
            (o for o in delivered if _within(o.delivered_at, as_of, FOLLOW_UP_MIN_AGE, FOLLOW_UP_MAX_AGE)),
            key=lambda o: _as_utc(o.delivered_at),
        )[:batch_size]

        queued = 0
        skipped = 0
        for order in due:
            if _already_followed_up(str(order.id)):
                skipped += 1
                continue

            ids = queue_notification(
                recipient=order.customer_email,
                notification_type=NotificationType.POST_PURCHASE.value,
                context={
                    "order_number": order.order_number,
                    "customer_name": order.customer_name,
                    "product_slugs": [item.product_slug for item in order.items],
                },
                resource_type="order",
                resource_id=str(order.id),
            )
            if ids:
                queued += 1

        logger.info("Post-purchase emails queued", found=len(due), queued=queued, skipped=skipped)
        return {"processed": len(due), "queued": queued, "skipped": skipped}

    @handle(SendWelcomeNotification)
    def send_welcome(self, command):
        if not command.email:
            raise ValidationError({"email": ["Email is required"]})

        ids = queue_notification(
            recipient=command.email,
            notification_type=NotificationType.WELCOME.value,
            context={"name": command.name},
            resource_type="user" if command.user_id else None,
            resource_id=str(command.user_id) if command.user_id else None,
        )
        return {"notification_ids": ids}
