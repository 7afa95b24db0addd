"""Tests for the Order aggregate — placement, expiry, payment and status edits."""

from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError

from storefront.errors import BusinessRuleViolation, ConcurrentModification, PaymentConfirmationRejected
from storefront.order.events import OrderPaymentConfirmed, OrderPlaced, OrderStatusChanged
from storefront.order.order import (
    INITIAL_HISTORY_NOTE,
    PAYMENT_CONFIRMED_NOTE,
    Order,
    OrderStatus,
    PaymentStatus,
    is_expired,
)

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)

ADDRESS = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "phone": None,
    "street": "1 Queen St W",
    "city": "Toronto",
    "province": "ON",
    "postal_code": "M5H 2N2",
    "country": "Canada",
}

ITEMS = [
    {
        "product_slug": "classic-hoodie",
        "title": "Classic Hoodie",
        "size": "M",
        "quantity": 2,
        "unit_price": 6500,
        "collection": "Core",
    },
    {"product_slug": "logo-tee", "title": "Logo Tee", "size": "L", "quantity": 1, "unit_price": 3000},
]


def _order(**overrides):
    kwargs = {
        "order_number": "WEZZA-0001",
        "items_data": ITEMS,
        "shipping_address": ADDRESS,
        "now": NOW,
    }
    kwargs.update(overrides)
    return Order.place(**kwargs)


class TestPlaceOrder:
    def test_new_order_awaits_payment(self):
        order = _order()
        assert order.status == OrderStatus.PENDING_PAYMENT.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.payment_method == "etransfer"
        assert order.currency == "CAD"

    def test_total_is_sum_of_lines(self):
        order = _order()
        assert order.total == 2 * 6500 + 3000

    def test_expires_after_grace_period(self):
        order = _order(grace_period_hours=48)
        assert order.expires_at == NOW + timedelta(hours=48)

    def test_customer_details_come_from_address(self):
        order = _order()
        assert order.customer_name == "Jane Doe"
        assert order.customer_email == "jane@example.com"
        assert order.shipping_address.city == "Toronto"

    def test_single_initial_history_entry(self):
        order = _order()
        assert len(order.history) == 1
        assert order.history[0].status == OrderStatus.PENDING_PAYMENT.value
        assert order.history[0].note == INITIAL_HISTORY_NOTE

    def test_raises_order_placed(self):
        order = _order()
        event = order._events[-1]
        assert isinstance(event, OrderPlaced)
        assert event.order_number == "WEZZA-0001"
        assert event.item_count == 2

    def test_revision_starts_at_zero(self):
        assert _order().revision == 0


class TestExpiry:
    def test_not_expired_before_deadline(self):
        order = _order()
        assert is_expired(order, now=NOW + timedelta(hours=47)) is False

    def test_not_expired_exactly_at_deadline(self):
        order = _order()
        assert order.is_expired(now=order.expires_at) is False

    def test_expired_after_deadline(self):
        order = _order()
        assert order.is_expired(now=NOW + timedelta(hours=48, seconds=1)) is True

    def test_expiry_is_passive(self):
        order = _order()
        order.is_expired(now=NOW + timedelta(days=10))
        assert order.status == OrderStatus.PENDING_PAYMENT.value


class TestConfirmPayment:
    def test_confirm_moves_to_processing(self):
        order = _order()
        order.confirm_payment(confirmed_by="admin@wezza.com", now=NOW + timedelta(hours=1))

        assert order.status == OrderStatus.PROCESSING.value
        assert order.payment_status == PaymentStatus.CONFIRMED.value
        assert order.payment_confirmed_by == "admin@wezza.com"
        assert order.payment_confirmed_at == NOW + timedelta(hours=1)
        assert order.history[-1].note == PAYMENT_CONFIRMED_NOTE
        assert order.revision == 1
        assert isinstance(order._events[-1], OrderPaymentConfirmed)

    def test_confirm_twice_is_rejected(self):
        order = _order()
        order.confirm_payment(now=NOW)

        with pytest.raises(PaymentConfirmationRejected) as exc:
            order.confirm_payment(now=NOW)

        assert exc.value.reason == PaymentConfirmationRejected.ALREADY_CONFIRMED
        assert len(order.history) == 2

    def test_confirm_after_deadline_is_rejected_without_mutation(self):
        order = _order()

        with pytest.raises(PaymentConfirmationRejected) as exc:
            order.confirm_payment(now=NOW + timedelta(hours=49))

        assert exc.value.reason == PaymentConfirmationRejected.EXPIRED
        assert order.status == OrderStatus.PENDING_PAYMENT.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert len(order.history) == 1
        assert order.revision == 0

    def test_confirm_on_cancelled_order_is_invalid_state(self):
        order = _order()
        order.update_status("cancelled", now=NOW)

        with pytest.raises(PaymentConfirmationRejected) as exc:
            order.confirm_payment(now=NOW)

        assert exc.value.reason == PaymentConfirmationRejected.INVALID_STATE

    def test_confirm_on_manually_expired_order(self):
        order = _order()
        order.update_status("expired", now=NOW)

        with pytest.raises(PaymentConfirmationRejected) as exc:
            order.confirm_payment(now=NOW)

        assert exc.value.reason == PaymentConfirmationRejected.EXPIRED


class TestUpdateStatus:
    def test_standard_move_appends_history(self):
        order = _order()
        order.confirm_payment(now=NOW)

        previous = order.update_status("shipped", tracking_number="1Z999", carrier="UPS", note="Left warehouse")

        assert previous == OrderStatus.PROCESSING
        assert order.status == OrderStatus.SHIPPED.value
        assert order.tracking_number == "1Z999"
        assert order.carrier == "UPS"
        assert order.history[-1].note == "Left warehouse"
        event = order._events[-1]
        assert isinstance(event, OrderStatusChanged)
        assert event.override is False

    def test_override_outside_table_is_allowed_and_flagged(self):
        order = _order()
        order.update_status("shipped", now=NOW)

        assert order.status == OrderStatus.SHIPPED.value
        assert order._events[-1].override is True

    def test_invalid_status_value(self):
        order = _order()
        with pytest.raises(ValidationError) as exc:
            order.update_status("teleported")
        assert "status" in exc.value.messages

    @pytest.mark.parametrize("terminal", ["completed", "cancelled", "expired"])
    def test_terminal_orders_reject_edits(self, terminal):
        order = _order()
        order.update_status(terminal, now=NOW)

        with pytest.raises(BusinessRuleViolation) as exc:
            order.update_status("processing")

        assert exc.value.reason == "terminal_state"
        assert order.status == terminal

    def test_tracking_only_edit_keeps_status(self):
        order = _order()
        order.confirm_payment(now=NOW)
        order.update_status(tracking_number="TRACK-1")

        assert order.status == OrderStatus.PROCESSING.value
        assert order.tracking_number == "TRACK-1"
        assert order.history[-1].status == OrderStatus.PROCESSING.value

    def test_delivered_sets_delivered_at(self):
        order = _order()
        order.confirm_payment(now=NOW)
        order.update_status("shipped", now=NOW + timedelta(days=1))
        order.update_status("delivered", now=NOW + timedelta(days=3))
        assert order.delivered_at == NOW + timedelta(days=3)

    def test_history_is_in_completion_order(self):
        order = _order()
        order.confirm_payment(now=NOW)
        order.update_status("shipped", now=NOW + timedelta(days=1))
        order.update_status("delivered", now=NOW + timedelta(days=2))

        assert [h.status for h in order.history] == [
            "pending_payment",
            "processing",
            "shipped",
            "delivered",
        ]

    def test_each_edit_bumps_revision(self):
        order = _order()
        order.update_status(note="Customer called")
        order.update_status(note="Customer called again")
        assert order.revision == 2


class TestRevisionCheck:
    def test_matching_revision_passes(self):
        order = _order()
        order.check_revision(0)

    def test_missing_revision_is_last_write_wins(self):
        order = _order()
        order.update_status(note="edit")
        order.check_revision(None)

    def test_stale_revision_rejected(self):
        order = _order()
        order.update_status(note="edit")

        with pytest.raises(ConcurrentModification) as exc:
            order.check_revision(0)

        assert exc.value.expected == 0
        assert exc.value.actual == 1
