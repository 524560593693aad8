import logging
import math
import time
from typing import Callable, Dict, List, Tuple

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from .config import Settings
from .errors import OriginRejected, RateLimited, error_response, unhandled_error_handler

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("gateway.access")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
}


class OriginGateMiddleware(BaseHTTPMiddleware):
    """Reject browser requests whose Origin is not allow-listed.

    Requests without an Origin header (curl, mobile apps, server-to-server)
    always pass.
    """

    def __init__(self, app, allowed_origins: List[str]):
        super().__init__(app)
        self.allowed = {o.rstrip("/") for o in allowed_origins}

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")
        if origin and origin.rstrip("/") not in self.allowed:
            logger.warning("CORS blocked origin=%s path=%s", origin, request.url.path)
            return error_response(OriginRejected())
        return await call_next(request)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request counter per client address."""

    def __init__(self, app, limit: int, window_seconds: int = 60, path_prefix: str = "/api/",
                 clock: Callable[[], float] = time.monotonic):
        super().__init__(app)
        self.limit = limit
        self.window = window_seconds
        self.path_prefix = path_prefix
        self.clock = clock
        self.hits: Dict[str, Tuple[float, int]] = {}  # client -> (window start, count)
        self._last_sweep = clock()

    def _sweep(self, now: float):
        # drop clients whose window has closed; runs at most once per window
        if now - self._last_sweep < self.window:
            return
        self.hits = {k: v for k, v in self.hits.items() if now - v[0] < self.window}
        self._last_sweep = now

    def _hit(self, client: str) -> Tuple[int, float]:
        now = self.clock()
        self._sweep(now)
        start, count = self.hits.get(client, (now, 0))
        if now - start >= self.window:
            start, count = now, 0
        count += 1
        self.hits[client] = (start, count)
        return count, max(0.0, start + self.window - now)

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        count, reset_in = self._hit(client)
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(max(0, self.limit - count)),
            "RateLimit-Reset": str(math.ceil(reset_in)),
        }
        if count > self.limit:
            logger.warning("rate limit exceeded client=%s path=%s", client, request.url.path)
            headers["Retry-After"] = str(math.ceil(reset_in))
            return error_response(RateLimited(), headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response


class CatchAllMiddleware(BaseHTTPMiddleware):
    """Turn unexpected exceptions into the JSON 500 inside the middleware stack.

    The response then still passes through CORS, security headers and the
    access log on its way out.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return await unhandled_error_handler(request, exc)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for k, v in SECURITY_HEADERS.items():
            response.headers.setdefault(k, v)
        return response


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - started) * 1000
        access_logger.info("%s %s %d %.1f ms", request.method, request.url.path, response.status_code, elapsed)
        return response


def install_middleware(app: FastAPI, cfg: Settings) -> None:
    # last added runs first: log -> headers -> origin gate -> cors -> rate limit -> catch-all
    app.add_middleware(CatchAllMiddleware)
    app.add_middleware(RateLimitMiddleware, limit=cfg.rate_limit_per_minute,
                       window_seconds=cfg.rate_limit_window_seconds)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(OriginGateMiddleware, allowed_origins=cfg.cors_origins)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLogMiddleware)
