"""Cart abandonment tracking — carts a shopper left without checking out.

The storefront reports the cart (email plus items) when a shopper leaves
checkout. Reports within the last week update the shopper's existing
record rather than piling up new ones. The cart recovery sweep later picks
up records that are a day or two old, and placing an order marks the
shopper's open records recovered so no reminder goes out for them.
"""

import json
from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.events import OrderPlaced
from storefront.order.order import Order

logger = structlog.get_logger(__name__)

DEDUPE_WINDOW = timedelta(days=7)


@storefront.aggregate
class CartAbandonment:
    email = String(required=True, max_length=255)
    user_id = Identifier()
    cart_items = Text(required=True)  # JSON list of cart lines
    cart_total = Integer(default=0, min_value=0)  # cents
    reminder_sent = Boolean(default=False)
    reminder_sent_at = DateTime()
    recovered = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, email, cart_items, cart_total=0, user_id=None, now=None):
        now = now or datetime.now(UTC)
        return cls(
            email=email,
            user_id=user_id,
            cart_items=json.dumps(cart_items),
            cart_total=cart_total,
            created_at=now,
            updated_at=now,
        )

    @property
    def items(self) -> list:
        return json.loads(self.cart_items) if self.cart_items else []

    def refresh(self, cart_items, cart_total=0, user_id=None, now=None):
        """Replace the tracked cart with its latest contents."""
        self.cart_items = json.dumps(cart_items)
        self.cart_total = cart_total
        if user_id:
            self.user_id = user_id
        self.updated_at = now or datetime.now(UTC)

    def mark_reminder_sent(self, now=None):
        now = now or datetime.now(UTC)
        self.reminder_sent = True
        self.reminder_sent_at = now
        self.updated_at = now

    def mark_recovered(self, now=None):
        self.recovered = True
        self.updated_at = now or datetime.now(UTC)


def _as_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)


def open_abandonments(email) -> list[CartAbandonment]:
    """Abandonments for ``email`` that have not been recovered."""
    repo = current_domain.repository_for(CartAbandonment)
    return repo._dao.query.filter(email=email, recovered=False).all().items


def _cart_total(items) -> int:
    total = 0
    for item in items:
        try:
            total += int(item.get("price", 0)) * int(item.get("quantity", 1))
        except (TypeError, ValueError):
            continue
    return total


@storefront.command(part_of="CartAbandonment")
class TrackCartAbandonment:
    email = String(max_length=255)
    cart_items = Text()  # JSON list of {slug, title, size, quantity, price}
    cart_total = Integer()
    user_id = Identifier()


@storefront.command_handler(part_of=CartAbandonment)
class CartAbandonmentHandler:
    @handle(TrackCartAbandonment)
    def track(self, command):
        """Record or refresh the shopper's abandoned cart.

        Returns ``{"abandonment_id", "created"}``.
        """
        cart_items = json.loads(command.cart_items) if isinstance(command.cart_items, str) else command.cart_items
        if not command.email or not cart_items:
            raise ValidationError({"cart_items": ["Email and cart items required"]})

        cart_total = command.cart_total if command.cart_total is not None else _cart_total(cart_items)
        now = datetime.now(UTC)
        repo = current_domain.repository_for(CartAbandonment)

        recent = [a for a in open_abandonments(command.email) if _as_utc(a.created_at) >= now - DEDUPE_WINDOW]
        if recent:
            abandonment = max(recent, key=lambda a: _as_utc(a.created_at))
            abandonment.refresh(cart_items, cart_total=cart_total, user_id=command.user_id, now=now)
            repo.add(abandonment)
            logger.info("Cart abandonment refreshed", abandonment_id=str(abandonment.id), email=command.email)
            return {"abandonment_id": str(abandonment.id), "created": False}

        abandonment = CartAbandonment.create(
            email=command.email,
            cart_items=cart_items,
            cart_total=cart_total,
            user_id=command.user_id,
            now=now,
        )
        repo.add(abandonment)
        logger.info("Cart abandonment tracked", abandonment_id=str(abandonment.id), email=command.email)
        return {"abandonment_id": str(abandonment.id), "created": True}


@storefront.event_handler(part_of=Order)
class CartRecoveryHandler:
    """Closes a shopper's open abandonments once they place an order."""

    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        repo = current_domain.repository_for(CartAbandonment)
        abandonments = open_abandonments(event.customer_email)
        for abandonment in abandonments:
            abandonment.mark_recovered(now=event.placed_at)
            repo.add(abandonment)

        if abandonments:
            logger.info(
                "Abandoned carts recovered",
                email=event.customer_email,
                order_number=event.order_number,
                count=len(abandonments),
            )
