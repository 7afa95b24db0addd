"""Tests for restock alerts sent to waitlist subscribers."""

import json

import pytest
from protean import current_domain

from storefront.catalogue.inventory import AdjustInventory, UpdateInventory
from storefront.catalogue.product import Product
from storefront.catalogue.waitlist import JoinRestockWaitlist, StockSubscription
from storefront.notification.channel import get_channel
from storefront.notification.notification import (
    Notification,
    NotificationStatus,
    NotificationType,
)

SUBSCRIBERS = ["a@example.com", "b@example.com", "c@example.com"]


@pytest.fixture()
def hoodie():
    product = Product.create(slug="classic-hoodie", title="Classic Hoodie", price=6500, sizes={"M": 0, "L": 2})
    current_domain.repository_for(Product).add(product)
    return product


@pytest.fixture()
def waitlist(hoodie):
    for email in SUBSCRIBERS:
        current_domain.process(
            JoinRestockWaitlist(email=email, product_slug="classic-hoodie", size="M"),
            asynchronous=False,
        )


def _restock(size_quantities):
    current_domain.process(
        UpdateInventory(product_slug="classic-hoodie", size_quantities=json.dumps(size_quantities)),
        asynchronous=False,
    )


def _subscriptions():
    return current_domain.repository_for(StockSubscription)._dao.query.all().items


class TestRestockAlerts:
    def test_every_subscriber_is_emailed_once(self, waitlist):
        _restock({"M": 4})

        sent = get_channel("Email").sent_emails
        assert sorted(email["to"] for email in sent) == SUBSCRIBERS
        assert all(email["subject"] == "Classic Hoodie in M is Back in Stock!" for email in sent)

    def test_subscriptions_marked_notified_after_send(self, waitlist):
        _restock({"M": 4})

        subscriptions = _subscriptions()
        assert len(subscriptions) == 3
        assert all(s.notified for s in subscriptions)
        assert all(s.notified_at is not None for s in subscriptions)

    def test_alert_references_subscription(self, waitlist):
        _restock({"M": 4})

        notifications = current_domain.repository_for(Notification)._dao.query.filter(
            notification_type=NotificationType.RESTOCK_ALERT.value
        ).all().items
        subscription_ids = {str(s.id) for s in _subscriptions()}
        assert {n.resource_id for n in notifications} == subscription_ids
        assert {n.resource_type for n in notifications} == {"stock_subscription"}

    def test_failed_send_keeps_subscriber_waiting(self, waitlist):
        get_channel("Email").configure(should_succeed=False)

        _restock({"M": 4})

        assert not any(s.notified for s in _subscriptions())
        failed = current_domain.repository_for(Notification)._dao.query.filter(
            status=NotificationStatus.FAILED.value
        ).all()
        assert failed.total == 3

    def test_notified_subscribers_are_not_alerted_again(self, waitlist):
        _restock({"M": 4})
        _restock({"M": 0})
        _restock({"M": 2})

        assert len(get_channel("Email").sent_emails) == 3

    def test_topping_up_stock_does_not_alert(self, hoodie):
        current_domain.process(
            JoinRestockWaitlist(email="a@example.com", product_slug="classic-hoodie", size="L"),
            asynchronous=False,
        )

        _restock({"L": 10})

        assert get_channel("Email").sent_emails == []

    def test_adjustment_from_zero_alerts(self, waitlist):
        current_domain.process(
            AdjustInventory(product_slug="classic-hoodie", size="M", adjustment=3),
            asynchronous=False,
        )

        assert len(get_channel("Email").sent_emails) == 3

    def test_other_sizes_are_not_alerted(self, waitlist):
        _restock({"S": 5})

        assert get_channel("Email").sent_emails == []
