"""HTTP plumbing shared by the storefront routers.

Maps storefront exceptions to responses and applies admission control to
requests. Protean's own ``ValidationError`` (400) and ``ObjectNotFoundError``
(404) are mapped by ``protean.integrations.fastapi``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from storefront.admission import get_limiter
from storefront.admission.limiter import RateLimitDecision, rate_limit_headers
from storefront.errors import (
    BusinessRuleViolation,
    ConcurrentModification,
    PersistenceError,
    RateLimited,
)

logger = structlog.get_logger(__name__)


def client_ip(request: Request) -> str:
    """Best guess at the caller's address, honouring a forwarding proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


def admit(key: str, max_requests: int, window_ms: int, message: str | None = None) -> RateLimitDecision:
    """Count a request against ``key``; raises ``RateLimited`` when over the limit."""
    decision = get_limiter().check(key, max_requests=max_requests, window_ms=window_ms)
    if not decision.allowed:
        raise RateLimited(decision.limit, decision.remaining, decision.reset_at, message=message)
    return decision


async def _rate_limited(request: Request, exc: RateLimited) -> JSONResponse:
    decision = RateLimitDecision(allowed=False, remaining=exc.remaining, reset_at=exc.reset_at, limit=exc.limit)
    headers = rate_limit_headers(decision)
    return JSONResponse(
        status_code=429,
        content={"error": str(exc), "retry_after": int(headers["Retry-After"])},
        headers=headers,
    )


async def _business_rule_violation(request: Request, exc: BusinessRuleViolation) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": str(exc), "reason": exc.reason})


async def _concurrent_modification(request: Request, exc: ConcurrentModification) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"error": str(exc), "reason": "concurrent_modification", "revision": exc.actual},
    )


async def _persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error("Persistence failure", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_error_handlers(app: FastAPI) -> None:
    """Install Protean's and the storefront's exception handlers on ``app``."""
    register_exception_handlers(app)
    app.add_exception_handler(RateLimited, _rate_limited)
    app.add_exception_handler(BusinessRuleViolation, _business_rule_violation)
    app.add_exception_handler(ConcurrentModification, _concurrent_modification)
    app.add_exception_handler(PersistenceError, _persistence_error)
