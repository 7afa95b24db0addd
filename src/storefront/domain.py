"""Storefront domain — order lifecycle, payment reconciliation and side effects.

A single bounded context that owns orders, the audit trail, notification
dispatch, admission control and the thin slice of catalogue data that
checkout needs (prices, per-size stock, restock waitlists).
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
