"""Storefront exceptions that map to distinct caller-visible outcomes.

Malformed input is reported with Protean's ``ValidationError`` and unknown
records with ``ObjectNotFoundError``; the classes below cover the remaining
categories of the error taxonomy.
"""


class StorefrontError(Exception):
    """Base exception for storefront business errors."""

    pass


class RateLimited(StorefrontError):
    """Raised when admission control denies a request."""

    def __init__(self, limit: int, remaining: int, reset_at: int, message: str | None = None):
        self.limit = limit
        self.remaining = remaining
        self.reset_at = reset_at
        super().__init__(message or "Too many requests. Please try again later.")


class BusinessRuleViolation(StorefrontError):
    """Raised when an operation is well-formed but not allowed in the current state."""

    reason = "business_rule_violation"

    def __init__(self, message: str, reason: str | None = None):
        if reason is not None:
            self.reason = reason
        super().__init__(message)


class PaymentConfirmationRejected(BusinessRuleViolation):
    """Raised when a payment cannot be confirmed for an order."""

    ALREADY_CONFIRMED = "already_confirmed"
    EXPIRED = "expired"
    INVALID_STATE = "invalid_state"

    _MESSAGES = {
        ALREADY_CONFIRMED: "Payment already confirmed",
        EXPIRED: "Order has expired and can no longer be paid",
        INVALID_STATE: "Order is not awaiting payment",
    }

    def __init__(self, reason: str, order_id: str | None = None):
        self.order_id = order_id
        super().__init__(self._MESSAGES.get(reason, "Payment cannot be confirmed"), reason=reason)


class ConcurrentModification(StorefrontError):
    """Raised when an update was based on a stale revision of a record."""

    def __init__(self, resource_id: str, expected: int, actual: int):
        self.resource_id = resource_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{resource_id} was modified concurrently (expected revision {expected}, found {actual})"
        )


class PersistenceError(StorefrontError):
    """Raised when a backing store fails during a primary write."""

    pass
