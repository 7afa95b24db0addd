"""In-memory email adapter used by tests and local development."""

from dataclasses import dataclass
from uuid import uuid4

from storefront.notification.channel.email_port import DeliveryResult, EmailPort, failed, sent

DEFAULT_FAILURE = "Email delivery failed"


class EmailDeliveryError(Exception):
    """Raised by the fake adapter when told to behave like a throwing SDK."""


@dataclass
class Outcome:
    succeed: bool = True
    raise_error: bool = False
    reason: str = DEFAULT_FAILURE


class FakeEmailAdapter(EmailPort):
    provider = "fake"

    def __init__(self):
        self.outbox: list[dict] = []
        self.calls = 0
        self.outcome = Outcome()

    @property
    def sent_emails(self) -> list[dict]:
        return self.outbox

    def configure(self, should_succeed: bool = True, failure_reason: str = DEFAULT_FAILURE, should_raise: bool = False):
        """Decide what the following ``send`` calls do.

        ``should_succeed=False`` reports a failed result; ``should_raise=True``
        raises ``EmailDeliveryError`` instead.
        """
        self.outcome = Outcome(succeed=should_succeed, raise_error=should_raise, reason=failure_reason)

    def send(self, to: str, subject: str, body: str, html_body: str | None = None) -> DeliveryResult:
        self.calls += 1
        if self.outcome.raise_error:
            raise EmailDeliveryError(self.outcome.reason)
        if not self.outcome.succeed:
            return failed(self.outcome.reason)

        message_id = f"email-{uuid4().hex[:12]}"
        self.outbox.append(
            {"message_id": message_id, "to": to, "subject": subject, "body": body, "html_body": html_body}
        )
        return sent(message_id)

    def reset(self):
        self.outbox.clear()
        self.calls = 0
        self.outcome = Outcome()
