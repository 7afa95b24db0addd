from unittest.mock import MagicMock

import pytest
import requests

from storefront.config import get_settings
from storefront.notification.channel import get_channel, reset_channels
from storefront.notification.channel.fake_email import EmailDeliveryError, FakeEmailAdapter
from storefront.notification.channel.resend_email import RESEND_API_URL, ResendEmailAdapter


class TestFakeEmailAdapter:
    def test_records_sent_messages(self):
        adapter = FakeEmailAdapter()

        result = adapter.send(to="jane@example.com", subject="Hi", body="Hello")

        assert result["status"] == "sent"
        assert result["message_id"].startswith("email-")
        assert adapter.sent_emails[0]["to"] == "jane@example.com"

    def test_configured_failure(self):
        adapter = FakeEmailAdapter()
        adapter.configure(should_succeed=False, failure_reason="Mailbox full")

        result = adapter.send(to="jane@example.com", subject="Hi", body="Hello")

        assert result == {"message_id": None, "status": "failed", "error": "Mailbox full"}
        assert adapter.sent_emails == []
        assert adapter.calls == 1

    def test_configured_exception(self):
        adapter = FakeEmailAdapter()
        adapter.configure(should_raise=True)

        with pytest.raises(EmailDeliveryError):
            adapter.send(to="jane@example.com", subject="Hi", body="Hello")


class TestResendEmailAdapter:
    def _adapter(self, response):
        session = MagicMock(spec=requests.Session)
        session.headers = {}
        session.post.return_value = response
        return ResendEmailAdapter(api_key="re_test", from_email="orders@wezza.example", session=session), session

    def test_posts_to_resend(self):
        response = MagicMock()
        response.json.return_value = {"id": "re-msg-1"}
        adapter, session = self._adapter(response)

        result = adapter.send(to="jane@example.com", subject="Hi", body="Hello", html_body="<p>Hello</p>")

        assert result == {"message_id": "re-msg-1", "status": "sent"}
        args, kwargs = session.post.call_args
        assert args[0] == RESEND_API_URL
        assert kwargs["json"]["to"] == ["jane@example.com"]
        assert kwargs["json"]["from"] == "orders@wezza.example"
        assert kwargs["json"]["html"] == "<p>Hello</p>"
        assert session.headers["Authorization"] == "Bearer re_test"

    def test_http_error_is_a_failed_result(self):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("422 Unprocessable")
        adapter, _ = self._adapter(response)

        result = adapter.send(to="jane@example.com", subject="Hi", body="Hello")

        assert result["status"] == "failed"
        assert "422" in result["error"]

    def test_connection_error_is_a_failed_result(self):
        adapter, session = self._adapter(MagicMock())
        session.post.side_effect = requests.ConnectionError("refused")

        assert adapter.send(to="jane@example.com", subject="Hi", body="Hello")["status"] == "failed"

    def test_unreadable_body_still_counts_as_sent(self):
        response = MagicMock(status_code=200)
        response.json.side_effect = requests.JSONDecodeError("Expecting value", "<html>", 0)
        adapter, _ = self._adapter(response)

        result = adapter.send(to="jane@example.com", subject="Hi", body="Hello")

        assert result == {"message_id": None, "status": "sent"}

    def test_body_without_id_counts_as_sent(self):
        response = MagicMock()
        response.json.return_value = ["unexpected"]
        adapter, _ = self._adapter(response)

        assert adapter.send(to="jane@example.com", subject="Hi", body="Hello") == {"message_id": None, "status": "sent"}


class TestChannelRegistry:
    def test_fake_adapter_by_default(self):
        adapter = get_channel("Email")

        assert isinstance(adapter, FakeEmailAdapter)
        assert adapter.provider == "fake"
        assert get_channel("Email") is adapter

    def test_resend_adapter_when_configured(self, monkeypatch):
        monkeypatch.setenv("EMAIL_ADAPTER", "resend")
        monkeypatch.setenv("RESEND_API_KEY", "re_test")
        get_settings.cache_clear()
        reset_channels()

        adapter = get_channel("Email")

        assert isinstance(adapter, ResendEmailAdapter)
        assert adapter.provider == "resend"

    def test_resend_requires_api_key(self, monkeypatch):
        monkeypatch.setenv("EMAIL_ADAPTER", "resend")
        monkeypatch.delenv("RESEND_API_KEY", raising=False)
        get_settings.cache_clear()
        reset_channels()

        with pytest.raises(ValueError):
            get_channel("Email")

    def test_unknown_channel(self):
        with pytest.raises(ValueError):
            get_channel("Pigeon")
