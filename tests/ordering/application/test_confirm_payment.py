"""Application tests for administrator payment confirmation."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError

from storefront.audit.entry import AuditLogEntry
from storefront.errors import ConcurrentModification, PaymentConfirmationRejected
from storefront.notification.channel import get_channel
from storefront.notification.notification import NotificationChannel
from storefront.order.order import Order, OrderStatus, PaymentStatus
from storefront.order.payment import ConfirmPayment


def _confirm(order_id, **kwargs):
    return current_domain.process(ConfirmPayment(order_id=order_id, **kwargs), asynchronous=False)


class TestConfirmPayment:
    def test_confirm_moves_order_to_processing(self, place_order):
        order_id = place_order()["order_id"]

        result = _confirm(order_id, confirmed_by="admin@wezza.com")

        assert result["status"] == OrderStatus.PROCESSING.value
        order = current_domain.repository_for(Order).get(order_id)
        assert order.payment_status == PaymentStatus.CONFIRMED.value
        assert order.payment_confirmed_by == "admin@wezza.com"
        assert order.history[-1].note == "Payment confirmed by admin"

    def test_confirmation_email_sent(self, place_order):
        order_id = place_order()["order_id"]
        _confirm(order_id)

        adapter = get_channel(NotificationChannel.EMAIL.value)
        assert adapter.sent_emails[-1]["subject"] == "Payment Confirmed - Order WEZZA-0001"

    def test_confirmation_is_audited(self, place_order):
        order_id = place_order()["order_id"]
        _confirm(order_id, confirmed_by="admin@wezza.com", actor_id="admin-1", ip_address="10.0.0.1")

        entries = current_domain.repository_for(AuditLogEntry)._dao.query.filter(resource_id=order_id).all().items
        assert len(entries) == 1
        entry = entries[0]
        assert entry.action == "order_payment_confirmed"
        assert entry.severity == "info"
        assert entry.user_email == "admin@wezza.com"
        assert entry.ip_address == "10.0.0.1"
        assert entry.user_id == "admin-1"

    def test_second_confirmation_rejected(self, place_order):
        order_id = place_order()["order_id"]
        _confirm(order_id)

        with pytest.raises(PaymentConfirmationRejected) as exc:
            _confirm(order_id)

        assert exc.value.reason == "already_confirmed"
        order = current_domain.repository_for(Order).get(order_id)
        assert len(order.history) == 2

    def test_expired_order_rejected_without_mutation(self, place_order):
        order_id = place_order()["order_id"]
        repo = current_domain.repository_for(Order)
        order = repo.get(order_id)
        order.expires_at = datetime.now(UTC) - timedelta(minutes=1)
        repo.add(order)

        with pytest.raises(PaymentConfirmationRejected) as exc:
            _confirm(order_id)

        assert exc.value.reason == "expired"
        order = repo.get(order_id)
        assert order.status == OrderStatus.PENDING_PAYMENT.value
        assert order.payment_status == PaymentStatus.PENDING.value

    def test_stale_revision_rejected(self, place_order):
        order_id = place_order()["order_id"]
        with pytest.raises(ConcurrentModification):
            _confirm(order_id, expected_revision=3)

        order = current_domain.repository_for(Order).get(order_id)
        assert order.payment_status == PaymentStatus.PENDING.value

    def test_unknown_order(self, catalogue):
        with pytest.raises(ObjectNotFoundError):
            _confirm("does-not-exist")

    def test_audit_write_failure_keeps_confirmation(self, place_order):
        order_id = place_order()["order_id"]

        with patch("storefront.audit.trail._write", side_effect=RuntimeError("audit table unavailable")):
            result = _confirm(order_id, confirmed_by="admin@wezza.com")

        assert result["status"] == OrderStatus.PROCESSING.value
        order = current_domain.repository_for(Order).get(order_id)
        assert order.payment_status == PaymentStatus.CONFIRMED.value
        assert current_domain.repository_for(AuditLogEntry)._dao.query.filter(resource_id=order_id).all().total == 0
        subjects = [email["subject"] for email in get_channel(NotificationChannel.EMAIL.value).sent_emails]
        assert "Payment Confirmed - Order WEZZA-0001" in subjects
