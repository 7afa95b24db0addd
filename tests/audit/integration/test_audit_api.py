import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.audit.api import audit_router
from storefront.audit.entry import AuditAction, AuditSeverity
from storefront.audit.trail import log_admin_action, log_security_event
from storefront.web import register_error_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(audit_router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def entries():
    log_admin_action(
        AuditAction.ORDER_DELETED,
        user_email="admin@wezza.com",
        resource="order",
        resource_id="order-1",
        metadata={"order_number": "WEZZA-0001"},
        severity=AuditSeverity.CRITICAL,
    )
    log_security_event(AuditAction.RATE_LIMIT_EXCEEDED, AuditSeverity.WARNING, ip_address="10.0.0.1")


class TestAuditLogAPI:
    def test_list(self, client, entries):
        response = client.get("/admin/audit-logs")

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert body["limit"] == 50
        assert body["offset"] == 0

    def test_metadata_is_returned_as_object(self, client, entries):
        response = client.get("/admin/audit-logs", params={"action": "order_deleted"})

        logs = response.json()["logs"]
        assert len(logs) == 1
        assert logs[0]["metadata"] == {"order_number": "WEZZA-0001"}
        assert logs[0]["severity"] == "critical"

    def test_limit_out_of_range(self, client):
        assert client.get("/admin/audit-logs", params={"limit": 0}).status_code == 422
        assert client.get("/admin/audit-logs", params={"limit": 501}).status_code == 422

    def test_stats(self, client, entries):
        response = client.get("/admin/audit-logs/stats")

        assert response.status_code == 200
        body = response.json()
        assert body["total_logs"] == 2
        assert body["critical_count"] == 1
        assert body["warning_count"] == 1
        assert {item["action"] for item in body["recent_actions"]} == {"order_deleted", "rate_limit_exceeded"}
