from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from gemmarket.api.routes_public_parts.common import Json, _chain, _gem_store, _marketplace
from gemmarket.api.schemas import CreateWalletRequest

router = APIRouter()


def _as_number(v: Any) -> float:
    """Node balance endpoints return either a bare number or {"balance": n}."""
    if isinstance(v, dict):
        v = v.get("balance")
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return 0
    return v


@router.get("/users")
def users_list_wallets(request: Request) -> Json:
    return {"ok": True, "wallets": _chain(request).list_wallets()}


@router.post("/users/wallet", status_code=201)
def users_create_wallet(body: CreateWalletRequest, request: Request) -> Json:
    return {"ok": True, "wallet": _chain(request).create_wallet(body.name)}


@router.get("/users/{address}")
def users_profile(address: str, request: Request) -> Json:
    """Wallet, owned gems and combined chain + escrow balance for an address."""
    chain = _chain(request)
    wallet = chain.get_wallet(address)
    gems = _gem_store(request).list_by_owner(address)
    on_chain = _as_number(chain.get_balance(address))
    escrow = _as_number(_marketplace(request).escrow_balance(address))

    return {
        "ok": True,
        "address": address,
        "wallet": wallet,
        "gems": [g.to_dict() for g in gems],
        "balance": {"blockchain": on_chain, "escrow": escrow, "total": on_chain + escrow},
    }
