from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gemmarket.api.config import ApiConfig, load_api_config
from gemmarket.api.errors import ApiError, api_error_handler, chain_error_handler
from gemmarket.api.routes_public import public_router
from gemmarket.api.security import RateLimitMiddleware, RequestSizeLimitMiddleware
from gemmarket.api.structured_logging import RequestLogMiddleware
from gemmarket.chain.client import ChainClient
from gemmarket.chain.errors import ChainError
from gemmarket.chain.gem_store import ChainGemStore
from gemmarket.chain.marketplace import MarketplaceService
from gemmarket.ledger.gem_ledger import GemLedger
from gemmarket.runtime.event_log import log_event

log = logging.getLogger("gemmarket.api")


def build_gem_store(cfg: ApiConfig, client: ChainClient):
    """Pick the gem store for this process.

    memory: in-process GemLedger, lost on restart.
    chain:  gem contract on the configured node.
    """
    if cfg.gem_backend == "chain":
        return ChainGemStore(client, cfg.gem_contract_id)
    return GemLedger()


def _parse_cors_origins(mode: str) -> List[str]:
    """Explicit CORS allowlist from GEMMARKET_CORS_ORIGINS.

    Unset/empty disables CORS. "*" is rejected in prod so that
    allow_credentials=True stays safe.
    """
    raw = os.environ.get("GEMMARKET_CORS_ORIGINS", "").strip()
    if not raw:
        return []

    origins = [o.strip() for o in raw.split(",") if o.strip()]
    if "*" in origins:
        if mode == "prod":
            raise RuntimeError(
                "Unsafe CORS configuration: wildcard '*' not allowed in production. "
                "Set explicit origins in GEMMARKET_CORS_ORIGINS."
            )
        return ["*"]
    return origins


def create_app(*, gem_store=None, chain_client: Optional[ChainClient] = None) -> FastAPI:
    """Create the FastAPI application.

    gem_store / chain_client:
      - None (default): built from environment config
      - given: used as-is (tests inject isolated instances)
    """
    cfg = load_api_config()

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        log_event(
            log,
            "api_started",
            mode=cfg.mode,
            gem_backend=app.state.gem_store.backend,
            chain_api_url=cfg.chain_api_url,
        )
        if app.state.gem_store.backend == "memory":
            log.warning("gem store is in-memory; minted gems are lost on restart")
        yield
        log_event(log, "api_stopped")

    if cfg.mode == "prod":
        app = FastAPI(title="Gem Marketplace API", docs_url=None, redoc_url=None, openapi_url=None, lifespan=_lifespan)
    else:
        app = FastAPI(title="Gem Marketplace API", lifespan=_lifespan)

    app.state.cfg = cfg
    client = chain_client or ChainClient(cfg.chain_api_url, timeout_s=cfg.chain_timeout_s)
    app.state.chain_client = client
    app.state.gem_store = gem_store if gem_store is not None else build_gem_store(cfg, client)
    app.state.marketplace = MarketplaceService(client, cfg.marketplace_contract_id)

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(ChainError, chain_error_handler)

    # --- Middleware (last added runs first) ---
    app.add_middleware(RequestSizeLimitMiddleware)
    app.add_middleware(RateLimitMiddleware)

    cors_origins = _parse_cors_origins(cfg.mode)
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type"],
        )

    app.add_middleware(RequestLogMiddleware)

    app.include_router(public_router)
    return app
