# src/gemmarket/api/structured_logging.py
from __future__ import annotations

import logging
import os
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from gemmarket.runtime.event_log import log_event
from gemmarket.runtime.metrics import inc_counter

Json = Dict[str, Any]


def _truthy(v: str | None) -> bool:
    if v is None:
        return False
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


def configure_structured_logging() -> None:
    """Configure stdlib logging for JSONL output on stdout.

    Level comes from GEMMARKET_LOG_LEVEL (default INFO). Calling it again only
    updates the level.
    """
    level_name = (os.environ.get("GEMMARKET_LOG_LEVEL") or "INFO").strip().upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    if getattr(root, "_gemmarket_configured", False):  # type: ignore[attr-defined]
        root.setLevel(level)
        return

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root.handlers = [handler]
    root.setLevel(level)
    setattr(root, "_gemmarket_configured", True)  # type: ignore[attr-defined]


class RequestLogMiddleware(BaseHTTPMiddleware):
    """One `http_request` log line per request.

    Besides the raw path, each line carries the matched route template
    (`/v1/gems/{gem_id}`), the `gem_id` / `listing_id` path parameter when
    present, and the gem store backend serving the app. Requests are counted
    into `http_requests` and, for 5xx, `http_server_errors`.

    Controls:
      - GEMMARKET_LOG_REQUESTS=0 to disable (default on)
      - GEMMARKET_LOG_REQUEST_HEADERS=1 to include a small header subset
    """

    def __init__(self, app) -> None:
        super().__init__(app)
        raw = (os.environ.get("GEMMARKET_LOG_REQUESTS") or "1").strip().lower()
        self._enabled = raw not in {"0", "false", "no", "n", "off"}
        self._log_headers = _truthy(os.environ.get("GEMMARKET_LOG_REQUEST_HEADERS"))
        self._logger = logging.getLogger("gemmarket.http")

    def _header_subset(self, request: Request) -> Json:
        if not self._log_headers:
            return {}
        out: Json = {}
        for k in ["user-agent", "content-type", "content-length", "x-forwarded-for"]:
            v = request.headers.get(k)
            if v:
                out[k] = v
        return out

    def _route_fields(self, request: Request) -> Json:
        route = request.scope.get("route")
        params = request.scope.get("path_params") or {}
        store = getattr(request.app.state, "gem_store", None)
        out: Json = {
            "route": getattr(route, "path", None),
            "gem_backend": getattr(store, "backend", None),
        }
        for k in ("gem_id", "listing_id"):
            if k in params:
                out[k] = str(params[k])
        return out

    async def dispatch(self, request: Request, call_next):
        if not self._enabled:
            return await call_next(request)

        started = time.monotonic()
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id

        status = 500
        err: Optional[str] = None
        response: Optional[Response] = None

        try:
            response = await call_next(request)
            status = int(response.status_code)
            response.headers.setdefault("x-request-id", request_id)
            return response
        except Exception as e:
            err = str(e)
            raise
        finally:
            inc_counter("http_requests")
            if status >= 500:
                inc_counter("http_server_errors")
            log_event(
                self._logger,
                "http_request",
                request_id=request_id,
                method=request.method,
                path=str(request.url.path or ""),
                status=status,
                duration_ms=int((time.monotonic() - started) * 1000),
                client=str(request.client.host) if request.client else "",
                headers=self._header_subset(request),
                error=err,
                **self._route_fields(request),
            )
