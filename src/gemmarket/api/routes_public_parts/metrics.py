from __future__ import annotations

from fastapi import APIRouter, Request, Response

from gemmarket.api.routes_public_parts.common import _gem_store
from gemmarket.runtime.metrics import format_prometheus, metrics_enabled, set_gauge


router = APIRouter()


@router.get("/metrics")
def metrics(request: Request) -> Response:
    """Prometheus-style metrics.

    Disabled by default. Enable with:
      GEMMARKET_METRICS_ENABLED=1

    gem_total_supply is read from this app's store at scrape time, so other
    ledgers in the same process never leak into it. The chain backend skips
    it to keep scrapes off the node.
    """
    if not metrics_enabled():
        return Response(status_code=404, content="not_found\n", media_type="text/plain")

    store = _gem_store(request)
    if store.backend == "memory":
        set_gauge("gem_total_supply", store.total_supply())
    return Response(content=format_prometheus(), media_type="text/plain")
