"""Request context middleware: request id, timing, access log and rate limit.

Everything happens in one pass of a single middleware. The token bucket
itself is the pure function ``check_rate_limit`` so it can be tested
without an application.
"""

import logging
import threading
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..core.config import settings
from ..core.logging_config import request_id_var

logger = logging.getLogger(__name__)

# client -> (tokens left, last refill)
_rate_buckets: dict[str, tuple[float, float]] = {}
_rate_lock = threading.Lock()

_SWEEP_INTERVAL = 100
_IDLE_SECONDS = 120.0
_calls_since_sweep = 0

_EXEMPT_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json"})


def _sweep(bucket: dict[str, tuple[float, float]], now: float) -> None:
    """Forget clients that have been idle for a while."""
    cutoff = now - _IDLE_SECONDS
    for key in [k for k, (_, seen) in bucket.items() if seen < cutoff]:
        del bucket[key]


def check_rate_limit(
    bucket: dict[str, tuple[float, float]],
    key: str,
    max_per_minute: int,
    now: Optional[float] = None,
) -> tuple[bool, float]:
    """Take one token for *key*.

    Returns ``(allowed, retry_after)``; *retry_after* is the number of
    seconds until a token is available again, 0.0 when allowed. A
    non-positive limit disables the check.
    """
    global _calls_since_sweep

    if max_per_minute <= 0:
        return True, 0.0
    now = time.monotonic() if now is None else now

    _calls_since_sweep += 1
    if _calls_since_sweep >= _SWEEP_INTERVAL:
        _calls_since_sweep = 0
        _sweep(bucket, now)

    per_second = max_per_minute / 60.0
    tokens, last = bucket.get(key, (float(max_per_minute), now))
    tokens = min(float(max_per_minute), tokens + (now - last) * per_second)

    if tokens < 1.0:
        bucket[key] = (tokens, now)
        return False, (1.0 - tokens) / per_second
    bucket[key] = (tokens - 1.0, now)
    return True, 0.0


def _client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _rate_limited(request_id: str, retry_after: float) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={
            "error": "RATE_LIMITED",
            "message": "Too many requests",
            "details": {"retry_after": round(retry_after, 1)},
        },
        headers={"Retry-After": str(int(retry_after) + 1), "X-Request-ID": request_id},
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Request id, rate limit, timing headers and the structured access log."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request_id_var.set(request_id)
        path = request.url.path

        if path not in _EXEMPT_PATHS:
            client = _client_key(request)
            with _rate_lock:
                allowed, retry_after = check_rate_limit(
                    _rate_buckets, client, settings.rate_limit_per_minute
                )
            if not allowed:
                logger.warning(
                    "Rate limit exceeded",
                    extra={"client": client, "path": path, "retry_after": round(retry_after, 1)},
                )
                return _rate_limited(request_id, retry_after)

        started = time.monotonic()
        response = await call_next(request)
        elapsed_ms = round((time.monotonic() - started) * 1000, 1)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms}ms"
        logger.info(
            f"{request.method} {path} {response.status_code}",
            extra={
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
        )
        return response
