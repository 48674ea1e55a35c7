"""HTTP middleware: request logging, security headers and API rate limiting."""

import logging
import time

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

# The browser editor loads Monaco and Pyodide from jsDelivr and runs user
# code in blob: workers.
CONTENT_SECURITY_POLICY = "; ".join([
    "default-src 'self'",
    "script-src 'self' 'unsafe-eval' cdn.jsdelivr.net",
    "connect-src 'self' ws: wss: data: https://cdn.jsdelivr.net",
    "style-src 'self' 'unsafe-inline' fonts.googleapis.com cdn.jsdelivr.net",
    "font-src 'self' fonts.gstatic.com",
    "img-src 'self' data: blob:",
    "worker-src 'self' blob:",
])

SECURITY_HEADERS = {
    "Content-Security-Policy": CONTENT_SECURITY_POLICY,
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with its status and duration."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s - %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach the security headers to every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request limit per client address on one path prefix.

    Each middleware instance owns its counters, so separate apps never share
    a budget. Allowed responses carry ``RateLimit-Limit``,
    ``RateLimit-Remaining`` and ``RateLimit-Reset`` headers; an exhausted
    budget gets ``429 {"error": ...}`` with ``Retry-After``.
    """

    def __init__(self, app: ASGIApp, limit: str, prefix: str) -> None:
        super().__init__(app)
        self.limit = parse(limit)
        self.prefix = prefix.rstrip("/")
        self._limiter = FixedWindowRateLimiter(MemoryStorage())

    def applies_to(self, path: str) -> bool:
        return path == self.prefix or path.startswith(self.prefix + "/")

    async def dispatch(self, request: Request, call_next) -> Response:
        if not self.applies_to(request.url.path):
            return await call_next(request)

        key = request.client.host if request.client else "unknown"
        allowed = self._limiter.hit(self.limit, key)
        reset_time, remaining = self._limiter.get_window_stats(self.limit, key)
        reset_in = max(0, int(reset_time - time.time()))
        headers = {
            "RateLimit-Limit": str(self.limit.amount),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(reset_in),
        }
        if not allowed:
            logger.warning("Rate limit exceeded for %s on %s", key, request.url.path)
            headers["Retry-After"] = str(reset_in)
            return JSONResponse(
                status_code=429, content={"error": RATE_LIMIT_MESSAGE}, headers=headers
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
