"""Restock alerts — the waitlist side of StockReplenished.

When a size comes back in stock, every subscriber still waiting on it gets a
RestockAlert notification. A subscription is marked notified only once its
alert has actually been sent, so a failed send leaves the subscriber waiting
for the next restock (or the retry sweep).
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.catalogue.events import StockReplenished
from storefront.catalogue.product import Product
from storefront.catalogue.waitlist import StockSubscription, pending_subscribers
from storefront.domain import storefront
from storefront.notification.events import NotificationSent
from storefront.notification.helpers import queue_notification
from storefront.notification.notification import (
    Notification,
    NotificationType,
)

logger = structlog.get_logger(__name__)

SUBSCRIPTION_RESOURCE = "stock_subscription"


@storefront.event_handler(part_of=Product)
class RestockAlertHandler:
    """Queues one restock alert per pending subscriber."""

    @handle(StockReplenished)
    def on_stock_replenished(self, event: StockReplenished) -> None:
        subscribers = pending_subscribers(event.product_slug, event.size)
        if not subscribers:
            return

        queued = 0
        for subscription in subscribers:
            ids = queue_notification(
                recipient=subscription.email,
                notification_type=NotificationType.RESTOCK_ALERT.value,
                context={
                    "product_title": event.product_title,
                    "product_slug": event.product_slug,
                    "size": event.size,
                },
                resource_type=SUBSCRIPTION_RESOURCE,
                resource_id=str(subscription.id),
            )
            queued += len(ids)

        logger.info(
            "Restock alerts queued",
            product_slug=event.product_slug,
            size=event.size,
            subscribers=len(subscribers),
            queued=queued,
        )


@storefront.event_handler(part_of=Notification)
class RestockDeliveryHandler:
    """Marks a subscription notified once its alert went out."""

    @handle(NotificationSent)
    def on_notification_sent(self, event: NotificationSent) -> None:
        if event.resource_type != SUBSCRIPTION_RESOURCE or not event.resource_id:
            return

        repo = current_domain.repository_for(StockSubscription)
        try:
            subscription = repo.get(event.resource_id)
        except ObjectNotFoundError:
            logger.warning(
                "Subscription for sent restock alert not found",
                subscription_id=event.resource_id,
            )
            return

        if subscription.notified:
            return

        subscription.mark_notified(notified_at=event.sent_at)
        repo.add(subscription)
