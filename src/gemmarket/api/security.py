from __future__ import annotations

import ipaddress
import os
import time
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def _truthy(v: str | None) -> bool:
    return (v or "").strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return int(default)
    try:
        return int(str(raw).strip())
    except ValueError:
        return int(default)


def _is_ip(raw: str) -> bool:
    try:
        ipaddress.ip_address(raw)
        return True
    except ValueError:
        return False


def _client_ip(request: Request) -> str:
    """Client IP used as the rate-limit key (never for auth).

    X-Forwarded-For is only honoured with GEMMARKET_TRUST_PROXY_HEADERS=1;
    otherwise a directly exposed backend would let clients pick their own key.
    """
    if _truthy(os.environ.get("GEMMARKET_TRUST_PROXY_HEADERS")):
        v = (request.headers.get("x-real-ip") or "").strip()
        if v and _is_ip(v):
            return v
        xff = request.headers.get("x-forwarded-for")
        if xff:
            ip = xff.split(",")[0].strip()
            if ip and _is_ip(ip):
                return ip

    if request.client and request.client.host:
        host = str(request.client.host)
        return host if _is_ip(host) else "unknown"
    return "unknown"


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": {"code": code, "message": message}})


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject oversized request bodies with 413.

    Configure:
      GEMMARKET_MAX_REQUEST_BYTES (default: 1_000_000)
      GEMMARKET_SIZE_LIMIT_DISABLE=1 to disable
    """

    def __init__(
        self,
        app,
        *,
        max_bytes: Optional[int] = None,
        exempt_prefixes: Tuple[str, ...] = ("/docs", "/openapi.json", "/v1/health"),
    ):
        super().__init__(app)
        self._enabled = not _truthy(os.environ.get("GEMMARKET_SIZE_LIMIT_DISABLE"))
        self._max_bytes = int(max_bytes) if max_bytes is not None else _env_int("GEMMARKET_MAX_REQUEST_BYTES", 1_000_000)
        self._exempt_prefixes = exempt_prefixes

    async def dispatch(self, request: Request, call_next):
        path = request.url.path or ""
        if not self._enabled or path.startswith(self._exempt_prefixes):
            return await call_next(request)

        cl = request.headers.get("content-length")
        if cl and cl.strip().isdigit() and int(cl) > self._max_bytes:
            return _error(413, "request_too_large", "Request body too large")

        # Content-Length can be absent (chunked), so cap the buffered body as well.
        if (request.method or "").upper() in {"POST", "PUT", "PATCH"}:
            body = await request.body()
            if len(body) > self._max_bytes:
                return _error(413, "request_too_large", "Request body too large")

        return await call_next(request)


@dataclass(frozen=True)
class TokenBucket:
    rate_per_sec: float
    burst: float


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory per-IP token bucket limiter with TTL and size-cap eviction.

    Single-process only; multi-replica deployments should limit at the edge.

    Configure:
      GEMMARKET_RL_TTL_S        (default 900)
      GEMMARKET_RL_MAX_KEYS     (default 20000)
      GEMMARKET_RL_PRUNE_EVERY  (default 256 requests)
    """

    def __init__(
        self,
        app,
        *,
        write_bucket: TokenBucket | None = None,
        read_bucket: TokenBucket | None = None,
        ttl_s: int | None = None,
        max_keys: int | None = None,
        prune_every: int | None = None,
        exempt_prefixes: Tuple[str, ...] = ("/docs", "/openapi.json", "/v1/health"),
    ):
        super().__init__(app)
        # key -> (tokens, last_refill_ts, last_seen_ts)
        self._buckets: Dict[str, Tuple[float, float, float]] = {}
        self._write = write_bucket or TokenBucket(rate_per_sec=4.0, burst=20.0)
        self._read = read_bucket or TokenBucket(rate_per_sec=12.0, burst=40.0)
        self._exempt_prefixes = exempt_prefixes
        self._ttl_s = int(ttl_s) if ttl_s is not None else _env_int("GEMMARKET_RL_TTL_S", 900)
        self._max_keys = int(max_keys) if max_keys is not None else _env_int("GEMMARKET_RL_MAX_KEYS", 20_000)
        pe = int(prune_every) if prune_every is not None else _env_int("GEMMARKET_RL_PRUNE_EVERY", 256)
        self._prune_every = max(1, pe)
        self._req_count = 0

    def _prune(self, now: float) -> None:
        if self._ttl_s > 0:
            cutoff = now - float(self._ttl_s)
            for k in [k for k, v in self._buckets.items() if v[2] < cutoff]:
                del self._buckets[k]

        overflow = len(self._buckets) - self._max_keys
        if self._max_keys > 0 and overflow > 0:
            oldest = sorted(self._buckets.items(), key=lambda kv: kv[1][2])[:overflow]
            for k, _ in oldest:
                del self._buckets[k]

    async def dispatch(self, request: Request, call_next):
        path = request.url.path or ""
        if path.startswith(self._exempt_prefixes):
            return await call_next(request)

        bucket = self._write if (request.method or "").upper() in WRITE_METHODS else self._read
        key = f"{_client_ip(request)}:{bucket.rate_per_sec}:{bucket.burst}"
        now = time.time()

        self._req_count += 1
        if self._req_count % self._prune_every == 0:
            self._prune(now)

        tokens, last, _ = self._buckets.get(key, (bucket.burst, now, now))
        tokens = min(bucket.burst, tokens + (now - last) * bucket.rate_per_sec)
        if tokens < 1.0:
            self._buckets[key] = (tokens, now, now)
            return _error(429, "rate_limited", "Too many requests")

        self._buckets[key] = (tokens - 1.0, now, now)
        if self._max_keys > 0 and len(self._buckets) > self._max_keys:
            self._prune(now)

        return await call_next(request)
