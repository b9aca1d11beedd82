from __future__ import annotations

from typing import Any, Dict, Union

from fastapi import Request

from gemmarket.api.errors import ApiError
from gemmarket.chain.client import ChainClient
from gemmarket.chain.gem_store import ChainGemStore
from gemmarket.chain.marketplace import MarketplaceService
from gemmarket.ledger.gem_ledger import GemLedger
from gemmarket.ledger.outcomes import NotFound, Ok, Unauthorized

Json = Dict[str, Any]

GemStore = Union[GemLedger, ChainGemStore]


def _gem_store(request: Request) -> GemStore:
    store = getattr(request.app.state, "gem_store", None)
    if store is None:
        raise ApiError.internal("not_ready", "gem store not attached to app.state", {})
    return store


def _chain(request: Request) -> ChainClient:
    client = getattr(request.app.state, "chain_client", None)
    if client is None:
        raise ApiError.internal("not_ready", "chain client not attached to app.state", {})
    return client


def _marketplace(request: Request) -> MarketplaceService:
    svc = getattr(request.app.state, "marketplace", None)
    if svc is None:
        raise ApiError.internal("not_ready", "marketplace service not attached to app.state", {})
    return svc


def _unwrap(outcome: Any) -> Any:
    """Return the value of an Ok outcome; raise the matching HTTP error otherwise."""
    if isinstance(outcome, Ok):
        return outcome.value
    if isinstance(outcome, NotFound):
        raise ApiError.not_found("gem_not_found", "Gem not found", {"gem_id": outcome.gem_id})
    if isinstance(outcome, Unauthorized):
        raise ApiError.forbidden(
            "not_owner",
            "Not the owner of this gem",
            {"gem_id": outcome.gem_id, "caller": outcome.caller},
        )
    raise ApiError.internal("bad_outcome", f"unexpected store outcome {type(outcome).__name__}", {})
