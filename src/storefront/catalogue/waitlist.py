"""Restock waitlist — shoppers asking to hear when a sold-out size returns.

One subscription per (email, product, size). A subscription is marked
notified only once its restock alert has actually been sent; see
``storefront.notification.restock``.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.aggregate
class StockSubscription:
    email = String(required=True, max_length=255)
    product_slug = String(required=True, max_length=200)
    size = String(required=True, max_length=20)
    user_id = Identifier()
    notified = Boolean(default=False)
    notified_at = DateTime()
    created_at = DateTime()

    @classmethod
    def create(cls, email, product_slug, size, user_id=None):
        return cls(
            email=email,
            product_slug=product_slug,
            size=size,
            user_id=user_id,
            notified=False,
            created_at=datetime.now(UTC),
        )

    def mark_notified(self, notified_at=None):
        self.notified = True
        self.notified_at = notified_at or datetime.now(UTC)


def pending_subscribers(product_slug, size) -> list[StockSubscription]:
    """Subscriptions for a product size that have not been alerted yet."""
    repo = current_domain.repository_for(StockSubscription)
    return repo._dao.query.filter(product_slug=product_slug, size=size, notified=False).all().items


def find_subscription(email, product_slug, size) -> StockSubscription | None:
    repo = current_domain.repository_for(StockSubscription)
    results = repo._dao.query.filter(email=email, product_slug=product_slug, size=size).all().items
    return results[0] if results else None


@storefront.command(part_of="StockSubscription")
class JoinRestockWaitlist:
    email = String(max_length=255)
    product_slug = String(max_length=200)
    size = String(max_length=20)
    user_id = Identifier()


@storefront.command_handler(part_of=StockSubscription)
class RestockWaitlistHandler:
    @handle(JoinRestockWaitlist)
    def join_waitlist(self, command):
        """Subscribe to a restock alert.

        Returns ``{"subscription_id", "created"}``. Joining twice is a no-op
        that reports ``created=False``.
        """
        if not command.product_slug or not command.size:
            raise ValidationError({"product_slug": ["Product slug and size are required"]})
        if not command.email:
            raise ValidationError({"email": ["Email is required"]})

        existing = find_subscription(command.email, command.product_slug, command.size)
        if existing is not None:
            logger.info(
                "Already on restock waitlist",
                email=command.email,
                product_slug=command.product_slug,
                size=command.size,
            )
            return {"subscription_id": str(existing.id), "created": False}

        subscription = StockSubscription.create(
            email=command.email,
            product_slug=command.product_slug,
            size=command.size,
            user_id=command.user_id,
        )
        current_domain.repository_for(StockSubscription).add(subscription)

        logger.info(
            "Joined restock waitlist",
            email=command.email,
            product_slug=command.product_slug,
            size=command.size,
        )
        return {"subscription_id": str(subscription.id), "created": True}
