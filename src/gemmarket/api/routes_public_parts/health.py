from __future__ import annotations

import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from gemmarket.api.routes_public_parts.common import Json, _chain, _gem_store
from gemmarket.chain.errors import ChainError

router = APIRouter()


def _now_ms() -> int:
    return int(time.time() * 1000)


@router.get("/health")
def health(request: Request) -> Json:
    """Liveness. Never touches the chain; 200 whenever the process serves requests."""
    store = _gem_store(request)
    return {
        "ok": True,
        "status": "healthy",
        "ts_ms": _now_ms(),
        "gem_backend": store.backend,
        "total_supply": store.total_supply() if store.backend == "memory" else None,
    }


@router.get("/health/chain")
def health_chain(request: Request):
    try:
        info = _chain(request).get_blockchain_info()
    except ChainError as e:
        return JSONResponse(
            status_code=503,
            content={
                "ok": False,
                "status": "unhealthy",
                "ts_ms": _now_ms(),
                "chain": {"connected": False, "error": e.code},
            },
        )
    chain_info = info if isinstance(info, dict) else {"info": info}
    return {"ok": True, "status": "healthy", "ts_ms": _now_ms(), "chain": {"connected": True, **chain_info}}
