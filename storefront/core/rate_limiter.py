"""
=============================================================================
STOREFRONT - RATE LIMITER MODULE
=============================================================================
Sliding-window request cap for the ``/api/*`` surface.

Features:
- N requests per window per client address (defaults: 100 / 15 minutes)
- In-memory backend (single instance) or Redis sorted-set backend
  (multi-instance); Redis unreachable at startup falls back to memory
- Trusted-proxy validation for X-Forwarded-For
- ``RateLimit-*`` response headers, ``Retry-After`` on 429

Usage:
    from storefront.core.rate_limiter import RateLimitMiddleware
    app.add_middleware(RateLimitMiddleware)
=============================================================================
"""

import ipaddress
import logging
import math
import time
import uuid
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Deque, Dict, List

import redis
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.core.config import settings

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."

# Parsed trusted proxy networks (built once at import)
_trusted_networks: List[ipaddress.IPv4Network | ipaddress.IPv6Network] = []


def _build_trusted_networks() -> None:
    """Parse TRUSTED_PROXIES setting into network objects."""
    global _trusted_networks
    nets = []
    for entry in settings.TRUSTED_PROXIES:
        try:
            nets.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            logger.warning("Invalid TRUSTED_PROXIES entry ignored: %s", entry)
    _trusted_networks = nets


_build_trusted_networks()


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int


# =============================================================================
# BACKEND ABSTRACTION
# =============================================================================


class _RateLimitBackend(ABC):
    """Abstract sliding-window storage backend."""

    @abstractmethod
    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        """Record one request for ``key`` unless the window is already full."""

    @abstractmethod
    def reset(self) -> None:
        """Clear all state (for tests)."""

    @abstractmethod
    def stats(self) -> dict:
        """Return debugging stats."""


class _InMemoryBackend(_RateLimitBackend):
    """Thread-safe in-memory backend (single-instance only).

    Keys whose newest hit has left the window are swept at most once per
    ``SWEEP_INTERVAL_SECONDS`` so idle client addresses do not accumulate.
    """

    SWEEP_INTERVAL_SECONDS = 60

    def __init__(self) -> None:
        self._lock = Lock()
        self._windows: Dict[str, Deque[float]] = {}
        self._last_sweep = 0.0

    def _sweep(self, window_start: float) -> None:
        idle = [k for k, w in self._windows.items() if not w or w[-1] <= window_start]
        for key in idle:
            del self._windows[key]

    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        now = time.time()
        window_start = now - window_seconds

        with self._lock:
            if now - self._last_sweep >= self.SWEEP_INTERVAL_SECONDS:
                self._sweep(window_start)
                self._last_sweep = now

            window = self._windows.setdefault(key, deque())
            while window and window[0] <= window_start:
                window.popleft()

            if len(window) >= limit:
                reset = math.ceil(window[0] + window_seconds - now)
                return RateLimitResult(False, limit, 0, max(reset, 1))

            window.append(now)
            reset = math.ceil(window[0] + window_seconds - now)
            return RateLimitResult(True, limit, limit - len(window), max(reset, 1))

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def stats(self) -> dict:
        with self._lock:
            return {
                "backend": "in_memory",
                "tracked_keys": len(self._windows),
                "counts": {k: len(v) for k, v in self._windows.items()},
            }


class _RedisBackend(_RateLimitBackend):
    """Redis sorted-set window for multi-instance deployments."""

    def __init__(self, redis_client) -> None:  # type: ignore[type-arg]
        self._redis = redis_client

    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        now = time.time()
        member = f"{now}:{uuid.uuid4().hex}"

        pipe = self._redis.pipeline(transaction=True)
        pipe.zremrangebyscore(key, 0, now - window_seconds)
        pipe.zadd(key, {member: now})
        pipe.zcard(key)
        pipe.zrange(key, 0, 0, withscores=True)
        pipe.expire(key, window_seconds)
        _, _, count, oldest, _ = pipe.execute()

        count = int(count)
        oldest_ts = float(oldest[0][1]) if oldest else now
        reset = max(math.ceil(oldest_ts + window_seconds - now), 1)

        if count > limit:
            # Rejected requests do not occupy a slot in the window.
            self._redis.zrem(key, member)
            return RateLimitResult(False, limit, 0, reset)
        return RateLimitResult(True, limit, limit - count, reset)

    def reset(self) -> None:
        cursor = 0
        while True:
            cursor, keys = self._redis.scan(cursor, match="rl:*", count=500)
            if keys:
                self._redis.delete(*keys)
            if cursor == 0:
                break

    def stats(self) -> dict:
        counts = {}
        cursor = 0
        while True:
            cursor, keys = self._redis.scan(cursor, match="rl:*", count=500)
            for k in keys:
                key_str = k if isinstance(k, str) else k.decode()
                counts[key_str] = int(self._redis.zcard(k))
            if cursor == 0:
                break
        return {"backend": "redis", "counts": counts}


# =============================================================================
# BACKEND INITIALIZATION
# =============================================================================


def _init_backend() -> _RateLimitBackend:
    """Use Redis when configured and reachable, otherwise in-memory."""
    if settings.RATE_LIMIT_BACKEND != "redis":
        return _InMemoryBackend()
    try:
        client = redis.Redis.from_url(
            settings.REDIS_URL, decode_responses=True, socket_connect_timeout=2
        )
        client.ping()
        logger.info("Rate limiter using Redis backend (%s)", settings.REDIS_URL)
        return _RedisBackend(client)
    except redis.RedisError as exc:
        logger.warning(
            "Redis unavailable for rate limiter, using in-memory fallback: %s", exc
        )
        return _InMemoryBackend()


_backend: _RateLimitBackend = _init_backend()


# =============================================================================
# IP EXTRACTION
# =============================================================================


def _is_trusted_proxy(ip_str: str) -> bool:
    """Check if an IP belongs to the configured trusted proxy ranges."""
    try:
        addr = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return any(addr in net for net in _trusted_networks)


def get_client_ip(request: Request) -> str:
    """Extract client IP, trusting X-Forwarded-For only from trusted proxies."""
    direct_ip = request.client.host if request.client else "unknown"

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and _is_trusted_proxy(direct_ip):
        parts = [p.strip() for p in forwarded.split(",") if p.strip()]
        # Rightmost untrusted hop is the real client
        for ip in reversed(parts):
            if not _is_trusted_proxy(ip):
                return ip
        if parts:
            return parts[0]

    return direct_ip


# =============================================================================
# MIDDLEWARE
# =============================================================================


def _limit_headers(result: RateLimitResult) -> Dict[str, str]:
    return {
        "RateLimit-Limit": str(result.limit),
        "RateLimit-Remaining": str(result.remaining),
        "RateLimit-Reset": str(result.reset_seconds),
    }


def check_rate_limit(client_ip: str) -> RateLimitResult:
    return _backend.hit(
        f"rl:ip:{client_ip}",
        settings.RATE_LIMIT_MAX,
        settings.RATE_LIMIT_WINDOW_SECONDS,
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Apply the sliding-window cap to every path under the API prefix."""

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(settings.API_PREFIX + "/"):
            return await call_next(request)

        client_ip = get_client_ip(request)
        result = check_rate_limit(client_ip)
        headers = _limit_headers(result)

        if not result.allowed:
            logger.warning("Rate limit exceeded for %s on %s", client_ip, request.url.path)
            headers["Retry-After"] = str(result.reset_seconds)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"success": False, "error": RATE_LIMIT_MESSAGE},
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response


# =============================================================================
# TEST / DEBUG HELPERS
# =============================================================================


def reset_rate_limiter_state() -> None:
    """Clear rate limiter state. Intended for tests."""
    _backend.reset()


def get_rate_limit_stats() -> dict:
    """Get current rate limiting statistics (for admin/debugging)."""
    return _backend.stats()
