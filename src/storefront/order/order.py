"""Order aggregate (CQRS) — one storefront order paid by manual e-transfer.

State Machine (7 states):
    PENDING_PAYMENT → PROCESSING → SHIPPED → DELIVERED → COMPLETED
    PENDING_PAYMENT → CANCELLED | EXPIRED
    PROCESSING → CANCELLED

Payment confirmation follows the table strictly. Administrative status
edits may move a non-terminal order to any status; terminal orders
(COMPLETED, CANCELLED, EXPIRED) accept no further edits.

Expiry is passive: ``is_expired`` is evaluated by readers, nothing moves an
order to EXPIRED on its own.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.errors import (
    BusinessRuleViolation,
    ConcurrentModification,
    PaymentConfirmationRejected,
)
from storefront.order.events import (
    OrderPaymentConfirmed,
    OrderPlaced,
    OrderStatusChanged,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING_PAYMENT = "pending_payment"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class PaymentStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    ETRANSFER = "etransfer"


# ---------------------------------------------------------------------------
# State Machine
# ---------------------------------------------------------------------------
_VALID_TRANSITIONS = {
    OrderStatus.PENDING_PAYMENT: {
        OrderStatus.PROCESSING,
        OrderStatus.CANCELLED,
        OrderStatus.EXPIRED,
    },
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.EXPIRED: set(),  # Terminal
}

TERMINAL_STATUSES = {status for status, targets in _VALID_TRANSITIONS.items() if not targets}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {
        PaymentStatus.CONFIRMED,
        PaymentStatus.FAILED,
        PaymentStatus.REFUNDED,
    },
    PaymentStatus.CONFIRMED: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.REFUNDED: set(),
}

INITIAL_HISTORY_NOTE = "Order created, awaiting e-transfer payment"
PAYMENT_CONFIRMED_NOTE = "Payment confirmed by admin"


def is_standard_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in _VALID_TRANSITIONS.get(current, set())


def _as_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingAddress:
    """Where the order goes and who to contact about it, captured at checkout."""

    name = String(required=True, max_length=255)
    email = String(required=True, max_length=255)
    phone = String(max_length=50)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    province = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """A line item priced from the catalogue at checkout time."""

    product_slug = String(required=True, max_length=200)
    title = String(required=True, max_length=255)
    size = String(required=True, max_length=20)
    quantity = Integer(required=True, min_value=1)
    unit_price = Integer(required=True, min_value=0)  # cents
    image = String(max_length=500)
    collection = String(max_length=100)

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


@storefront.entity(part_of="Order")
class StatusHistoryEntry:
    """One immutable line in an order's status history."""

    status = String(required=True, max_length=50)
    timestamp = DateTime(required=True)
    note = Text()
    sequence = Integer(required=True, min_value=0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING_PAYMENT.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.ETRANSFER.value)

    items = HasMany(OrderItem)
    total = Integer(default=0)  # cents
    currency = String(max_length=3, default="CAD")

    customer_name = String(max_length=255)
    customer_email = String(max_length=255)
    customer_phone = String(max_length=50)
    shipping_address = ValueObject(ShippingAddress)

    tracking_number = String(max_length=255)
    carrier = String(max_length=100)

    payment_confirmed_at = DateTime()
    payment_confirmed_by = String(max_length=255)
    delivered_at = DateTime()

    status_history = HasMany(StatusHistoryEntry)
    revision = Integer(default=0)

    created_at = DateTime()
    expires_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, order_number, items_data, shipping_address, currency="CAD", grace_period_hours=48, now=None):
        """Create a new order awaiting e-transfer payment.

        Args:
            order_number: Allocated human-readable number.
            items_data: List of dicts with product_slug, title, size,
                        quantity, unit_price, image, collection.
            shipping_address: Dict with name, email, phone, street, city,
                              province, postal_code, country.
        """
        now = now or datetime.now(UTC)

        order = cls(
            order_number=order_number,
            status=OrderStatus.PENDING_PAYMENT.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=PaymentMethod.ETRANSFER.value,
            currency=currency,
            customer_name=shipping_address["name"],
            customer_email=shipping_address["email"],
            customer_phone=shipping_address.get("phone"),
            shipping_address=ShippingAddress(**shipping_address),
            created_at=now,
            expires_at=now + timedelta(hours=grace_period_hours),
            updated_at=now,
            revision=0,
        )

        for item in items_data:
            order.add_items(OrderItem(**item))
        order.total = sum(item.line_total for item in order.items)

        order._append_history(OrderStatus.PENDING_PAYMENT.value, INITIAL_HISTORY_NOTE, now)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_email=order.customer_email,
                total=order.total,
                currency=currency,
                item_count=len(order.items),
                expires_at=order.expires_at,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_expired(self, now=None) -> bool:
        return is_expired(self, now)

    @property
    def history(self) -> list:
        """Status history in the order it was written."""
        return sorted(self.status_history, key=lambda entry: entry.sequence)

    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_STATUSES

    # -------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate a transition against the state machine."""
        current = OrderStatus(self.status)
        if not is_standard_transition(current, target_status):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _assert_payment_can_transition(self, target_status):
        current = PaymentStatus(self.payment_status)
        if target_status not in _PAYMENT_TRANSITIONS.get(current, set()):
            raise ValidationError(
                {"payment_status": [f"Cannot transition payment from {current.value} to {target_status.value}"]}
            )

    def check_revision(self, expected_revision):
        """Reject stale writes when the caller says which revision it read."""
        if expected_revision is not None and expected_revision != self.revision:
            raise ConcurrentModification(str(self.id), expected_revision, self.revision)

    def _append_history(self, status, note, timestamp):
        self.add_status_history(
            StatusHistoryEntry(
                status=status,
                timestamp=timestamp,
                note=note,
                sequence=len(self.status_history),
            )
        )

    def _touch(self, now):
        self.updated_at = now
        self.revision = (self.revision or 0) + 1

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def confirm_payment(self, confirmed_by=None, now=None, actor_id=None, ip_address=None):
        """Mark the e-transfer as received and start processing the order.

        Only a pending payment on an unexpired PENDING_PAYMENT order can be
        confirmed. Rejections leave the order untouched.
        """
        now = now or datetime.now(UTC)

        if PaymentStatus(self.payment_status) == PaymentStatus.CONFIRMED:
            raise PaymentConfirmationRejected(PaymentConfirmationRejected.ALREADY_CONFIRMED, order_id=str(self.id))
        if OrderStatus(self.status) == OrderStatus.EXPIRED or self.is_expired(now):
            raise PaymentConfirmationRejected(PaymentConfirmationRejected.EXPIRED, order_id=str(self.id))
        if (
            PaymentStatus(self.payment_status) != PaymentStatus.PENDING
            or OrderStatus(self.status) != OrderStatus.PENDING_PAYMENT
        ):
            raise PaymentConfirmationRejected(PaymentConfirmationRejected.INVALID_STATE, order_id=str(self.id))

        self._assert_payment_can_transition(PaymentStatus.CONFIRMED)
        self._assert_can_transition(OrderStatus.PROCESSING)

        self.payment_status = PaymentStatus.CONFIRMED.value
        self.payment_confirmed_at = now
        self.payment_confirmed_by = confirmed_by
        self.status = OrderStatus.PROCESSING.value
        self._append_history(OrderStatus.PROCESSING.value, PAYMENT_CONFIRMED_NOTE, now)
        self._touch(now)

        self.raise_(
            OrderPaymentConfirmed(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_email=self.customer_email,
                total=self.total,
                confirmed_by=confirmed_by,
                actor_id=actor_id,
                ip_address=ip_address,
                confirmed_at=now,
            )
        )

    def update_status(
        self,
        new_status=None,
        tracking_number=None,
        carrier=None,
        note=None,
        changed_by=None,
        now=None,
        actor_id=None,
        ip_address=None,
    ):
        """Administrative edit of status and/or tracking details.

        Returns the previous status. Moves outside the standard table are
        allowed as overrides as long as the order is not terminal.
        """
        now = now or datetime.now(UTC)

        if new_status is not None:
            try:
                target = OrderStatus(new_status)
            except ValueError:
                valid = ", ".join(s.value for s in OrderStatus)
                raise ValidationError({"status": [f"Invalid status '{new_status}'. Must be one of: {valid}"]}) from None
        else:
            target = OrderStatus(self.status)

        current = OrderStatus(self.status)
        if current in TERMINAL_STATUSES:
            raise BusinessRuleViolation(
                f"Order is {current.value} and can no longer be changed", reason="terminal_state"
            )

        if tracking_number is not None:
            self.tracking_number = tracking_number or None
        if carrier is not None:
            self.carrier = carrier or None

        self.status = target.value
        if target == OrderStatus.DELIVERED and current != OrderStatus.DELIVERED:
            self.delivered_at = now

        self._append_history(target.value, note, now)
        self._touch(now)

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=current.value,
                new_status=target.value,
                override=target != current and not is_standard_transition(current, target),
                tracking_number=self.tracking_number,
                carrier=self.carrier,
                note=note,
                changed_by=changed_by,
                actor_id=actor_id,
                ip_address=ip_address,
                changed_at=now,
            )
        )
        return current


def is_expired(order, now=None) -> bool:
    """True once ``now`` is past the order's payment deadline."""
    now = now or datetime.now(UTC)
    if order.expires_at is None:
        return False
    return _as_utc(now) > _as_utc(order.expires_at)
