"""Domain events for the Notification aggregate.

Every event names the resource the message is about, so handlers in other
parts of the storefront (the restock waitlist, for instance) can follow up
on delivery without loading the notification.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Notification")
class NotificationCreated:
    """An outbox record was stored; immediate ones are dispatched after commit."""

    __version__ = 1

    notification_id: Identifier(required=True)
    notification_type: String(required=True)
    channel: String(required=True)
    recipient: String(required=True)
    resource_type: String()
    resource_id: String()
    scheduled_for: DateTime()
    created_at: DateTime(required=True)


@storefront.event(part_of="Notification")
class NotificationSent:
    __version__ = 1

    notification_id: Identifier(required=True)
    notification_type: String(required=True)
    recipient: String(required=True)
    resource_type: String()
    resource_id: String()
    message_id: String()
    attempt: Integer(required=True)
    sent_at: DateTime(required=True)


@storefront.event(part_of="Notification")
class NotificationFailed:
    """A delivery attempt was rejected or blew up.

    ``will_retry`` tells whether the sweep is going to pick it up again.
    """

    __version__ = 1

    notification_id: Identifier(required=True)
    notification_type: String(required=True)
    recipient: String(required=True)
    resource_type: String()
    resource_id: String()
    reason: String(required=True)
    attempt: Integer(required=True)
    will_retry: Boolean(default=False)
    failed_at: DateTime(required=True)


@storefront.event(part_of="Notification")
class NotificationRequeued:
    """A failed notification went back to PENDING for another attempt."""

    __version__ = 1

    notification_id: Identifier(required=True)
    attempts_so_far: Integer(required=True)
    requeued_at: DateTime(required=True)


@storefront.event(part_of="Notification")
class NotificationCancelled:
    __version__ = 1

    notification_id: Identifier(required=True)
    resource_type: String()
    resource_id: String()
    reason: String(required=True)
    cancelled_at: DateTime(required=True)
