from __future__ import annotations

from fastapi import APIRouter, Request

from gemmarket.api.routes_public_parts.common import Json, _gem_store, _unwrap
from gemmarket.api.schemas import MintGemRequest, TransferGemRequest

router = APIRouter()


@router.post("/gems/mint", status_code=201)
def gems_mint(body: MintGemRequest, request: Request) -> Json:
    """Mint a gem. Attributes are rolled randomly when the body omits them."""
    store = _gem_store(request)
    attrs = body.attributes.to_attributes() if body.attributes is not None else None
    minted = store.mint(body.name, body.owner, attrs, body.metadata_uri)
    return {
        "ok": True,
        "gem_id": minted.gem_id,
        "transaction_id": minted.receipt,
        "attributes": minted.record.attributes.to_dict(),
    }


# Static paths are declared before /gems/{gem_id} so they are not shadowed.
@router.get("/gems/stats/supply")
def gems_total_supply(request: Request) -> Json:
    return {"ok": True, "total_supply": _gem_store(request).total_supply()}


@router.get("/gems/owner/{address}")
def gems_by_owner(address: str, request: Request) -> Json:
    gems = _gem_store(request).list_by_owner(address)
    return {"ok": True, "owner": address, "gems": [g.to_dict() for g in gems]}


@router.get("/gems/{gem_id}")
def gems_get(gem_id: str, request: Request) -> Json:
    gem = _unwrap(_gem_store(request).get(gem_id))
    return {"ok": True, "gem": gem.to_dict()}


@router.get("/gems/{gem_id}/owner/{address}")
def gems_verify_owner(gem_id: str, address: str, request: Request) -> Json:
    is_owner = _gem_store(request).verify_ownership(gem_id, address)
    return {"ok": True, "gem_id": gem_id, "address": address, "is_owner": is_owner}


@router.post("/gems/{gem_id}/transfer")
def gems_transfer(gem_id: str, body: TransferGemRequest, request: Request) -> Json:
    receipt = _unwrap(_gem_store(request).transfer(gem_id, body.from_, body.to))
    rec = receipt.record
    return {
        "ok": True,
        "gem_id": gem_id,
        "transaction_id": receipt.receipt,
        "owner": rec.owner,
        "transfer_count": rec.transfer_count,
    }
