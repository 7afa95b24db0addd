"""Notification aggregate — the outbox record for one outbound message.

A notification is stored PENDING in the same unit of work as the change
that caused it. Delivery happens afterwards, either right after commit
(``NotificationDispatcher``) or from the periodic sweep
(``DispatchPendingNotifications``), and each attempt is recorded here::

    PENDING ──attempt ok──▶ SENT
       │  ▲
       │  └── requeue (attempts < max_attempts) ──┐
       ├──attempt failed──▶ FAILED ───────────────┘
       └──cancel──▶ CANCELLED
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Integer, String, Text

from storefront.domain import storefront
from storefront.notification.events import (
    NotificationCancelled,
    NotificationCreated,
    NotificationFailed,
    NotificationRequeued,
    NotificationSent,
)

DEFAULT_MAX_ATTEMPTS = 3
UNKNOWN_FAILURE = "Unknown dispatch error"


class NotificationType(Enum):
    PAYMENT_INSTRUCTIONS = "PaymentInstructions"
    PAYMENT_CONFIRMATION = "PaymentConfirmation"
    SHIPPING_UPDATE = "ShippingUpdate"
    DELIVERY_CONFIRMATION = "DeliveryConfirmation"
    RESTOCK_ALERT = "RestockAlert"
    CART_RECOVERY = "CartRecovery"
    POST_PURCHASE = "PostPurchase"
    WELCOME = "Welcome"


class NotificationChannel(Enum):
    EMAIL = "Email"


class NotificationStatus(Enum):
    PENDING = "Pending"
    SENT = "Sent"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


_NEXT_STATUSES = {
    NotificationStatus.PENDING: {NotificationStatus.SENT, NotificationStatus.FAILED, NotificationStatus.CANCELLED},
    NotificationStatus.FAILED: {NotificationStatus.PENDING},
    NotificationStatus.SENT: set(),
    NotificationStatus.CANCELLED: set(),
}


def _as_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)


@storefront.aggregate
class Notification:
    """One message to one recipient, and the record of delivering it."""

    recipient: String(required=True, max_length=255)  # email address for the Email channel
    notification_type: String(choices=NotificationType, required=True)
    channel: String(choices=NotificationChannel, default=NotificationChannel.EMAIL.value)

    subject: String(max_length=500)
    body: Text(required=True)
    template_name: String(max_length=200)
    context_data: Text()  # JSON the template was rendered from

    # The order, subscription or cart the message is about
    resource_type: String(max_length=100)
    resource_id: String(max_length=200)

    status: String(choices=NotificationStatus, default=NotificationStatus.PENDING.value)
    scheduled_for: DateTime()  # None: send right after commit

    attempts: Integer(default=0, min_value=0)
    max_attempts: Integer(default=DEFAULT_MAX_ATTEMPTS, min_value=1)
    last_attempt_at: DateTime()
    sent_at: DateTime()
    message_id: String(max_length=255)
    failure_reason: String(max_length=500)

    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def create(
        cls,
        recipient,
        notification_type,
        body,
        subject=None,
        channel=NotificationChannel.EMAIL.value,
        template_name=None,
        resource_type=None,
        resource_id=None,
        context_data=None,
        scheduled_for=None,
        max_attempts=DEFAULT_MAX_ATTEMPTS,
    ):
        now = datetime.now(UTC)
        notification = cls(
            recipient=recipient,
            notification_type=notification_type,
            channel=channel,
            subject=subject,
            body=body,
            template_name=template_name,
            context_data=context_data,
            resource_type=resource_type,
            resource_id=resource_id,
            scheduled_for=scheduled_for,
            max_attempts=max_attempts,
            created_at=now,
            updated_at=now,
        )
        notification.raise_(
            NotificationCreated(
                notification_id=str(notification.id),
                notification_type=notification_type,
                channel=channel,
                recipient=recipient,
                resource_type=resource_type,
                resource_id=resource_id,
                scheduled_for=scheduled_for,
                created_at=now,
            )
        )
        return notification

    def is_due(self, as_of=None) -> bool:
        """True when a PENDING notification may be dispatched at ``as_of``."""
        if self.status != NotificationStatus.PENDING.value:
            return False
        if self.scheduled_for is None:
            return True
        return _as_utc(self.scheduled_for) <= _as_utc(as_of or datetime.now(UTC))

    @property
    def can_retry(self) -> bool:
        return self.status == NotificationStatus.FAILED.value and self.attempts < self.max_attempts

    def _move_to(self, target: NotificationStatus, now: datetime) -> None:
        current = NotificationStatus(self.status)
        if target not in _NEXT_STATUSES[current]:
            raise ValidationError({"status": [f"Cannot move notification from {current.value} to {target.value}"]})
        self.status = target.value
        self.updated_at = now

    def record_attempt(self, result: dict, now=None) -> bool:
        """Record what a channel adapter returned for one attempt.

        A ``status`` of ``"sent"`` marks the notification SENT; anything else
        is a failure carrying ``error``. Returns True when sent.
        """
        if result.get("status") == "sent":
            self.mark_sent(result.get("message_id"), now=now)
            return True
        self.mark_failed(result.get("error"), now=now)
        return False

    def mark_sent(self, message_id=None, now=None):
        now = now or datetime.now(UTC)
        self._move_to(NotificationStatus.SENT, now)
        self.attempts += 1
        self.last_attempt_at = now
        self.sent_at = now
        self.message_id = message_id
        self.failure_reason = None

        self.raise_(
            NotificationSent(
                notification_id=str(self.id),
                notification_type=self.notification_type,
                recipient=self.recipient,
                resource_type=self.resource_type,
                resource_id=self.resource_id,
                message_id=message_id,
                attempt=self.attempts,
                sent_at=now,
            )
        )

    def mark_failed(self, reason=None, now=None):
        now = now or datetime.now(UTC)
        self._move_to(NotificationStatus.FAILED, now)
        self.attempts += 1
        self.last_attempt_at = now
        self.failure_reason = (reason or UNKNOWN_FAILURE)[:500]

        self.raise_(
            NotificationFailed(
                notification_id=str(self.id),
                notification_type=self.notification_type,
                recipient=self.recipient,
                resource_type=self.resource_type,
                resource_id=self.resource_id,
                reason=self.failure_reason,
                attempt=self.attempts,
                will_retry=self.can_retry,
                failed_at=now,
            )
        )

    def requeue(self, now=None):
        """Put a FAILED notification back in line for another attempt."""
        if not self.can_retry:
            raise ValidationError(
                {"status": [f"Notification cannot be retried after {self.attempts} of {self.max_attempts} attempts"]}
            )
        now = now or datetime.now(UTC)
        self._move_to(NotificationStatus.PENDING, now)
        self.failure_reason = None

        self.raise_(
            NotificationRequeued(
                notification_id=str(self.id),
                attempts_so_far=self.attempts,
                requeued_at=now,
            )
        )

    def cancel(self, reason, now=None):
        now = now or datetime.now(UTC)
        self._move_to(NotificationStatus.CANCELLED, now)
        self.failure_reason = reason

        self.raise_(
            NotificationCancelled(
                notification_id=str(self.id),
                resource_type=self.resource_type,
                resource_id=self.resource_id,
                reason=reason,
                cancelled_at=now,
            )
        )
