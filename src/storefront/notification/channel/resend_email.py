"""Email adapter backed by the Resend HTTP API."""

import requests
import structlog

from storefront.notification.channel.email_port import DeliveryResult, EmailPort, failed, sent

logger = structlog.get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class ResendEmailAdapter(EmailPort):
    provider = "resend"

    def __init__(self, api_key: str, from_email: str, timeout: int = 30, session: requests.Session | None = None):
        self.from_email = from_email
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["Authorization"] = f"Bearer {api_key}"

    def send(self, to: str, subject: str, body: str, html_body: str | None = None) -> DeliveryResult:
        payload = {"from": self.from_email, "to": [to], "subject": subject, "text": body}
        if html_body:
            payload["html"] = html_body

        try:
            response = self.session.post(RESEND_API_URL, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("resend_request_failed", recipient=to, error=str(exc))
            return failed(f"Resend request failed: {exc}")

        # The email is accepted once the POST succeeds; the id is informational
        try:
            data = response.json()
        except ValueError:
            logger.warning("resend_response_unreadable", recipient=to, status_code=response.status_code)
            return sent(None)
        return sent(data.get("id") if isinstance(data, dict) else None)
