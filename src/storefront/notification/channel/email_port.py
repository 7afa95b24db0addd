"""Email channel port and the delivery result every adapter reports."""

from abc import ABC, abstractmethod
from typing import TypedDict


class DeliveryResult(TypedDict, total=False):
    status: str  # "sent" or "failed"
    message_id: str | None
    error: str


def sent(message_id: str | None) -> DeliveryResult:
    return {"status": "sent", "message_id": message_id}


def failed(error: str) -> DeliveryResult:
    return {"status": "failed", "message_id": None, "error": error}


class EmailPort(ABC):
    """Something that can put one email in front of one recipient.

    Adapters report provider rejections as a ``failed`` result. Exceptions
    they let escape are turned into failures by the dispatcher.
    """

    provider: str = "unknown"

    @abstractmethod
    def send(self, to: str, subject: str, body: str, html_body: str | None = None) -> DeliveryResult: ...
