from __future__ import annotations

from fastapi import APIRouter, Request

from gemmarket.api.errors import ApiError
from gemmarket.api.routes_public_parts.common import Json, _marketplace
from gemmarket.api.schemas import (
    BuyGemRequest,
    CancelListingRequest,
    CreateListingRequest,
    EndAuctionRequest,
    PlaceBidRequest,
    WithdrawRequest,
)

router = APIRouter()


@router.post("/marketplace/listings", status_code=201)
def listings_create(body: CreateListingRequest, request: Request) -> Json:
    res = _marketplace(request).create_listing(
        body.gem_id, body.seller, body.listing_type, body.price, body.duration_secs
    )
    return {"ok": True, **res}


@router.get("/marketplace/listings")
def listings_active(request: Request) -> Json:
    return {"ok": True, "listings": _marketplace(request).active_listings()}


@router.get("/marketplace/listings/{listing_id}")
def listings_get(listing_id: str, request: Request) -> Json:
    listing = _marketplace(request).get_listing(listing_id)
    if listing is None:
        raise ApiError.not_found("listing_not_found", "Listing not found", {"listing_id": listing_id})
    return {"ok": True, "listing": listing}


@router.post("/marketplace/listings/{listing_id}/buy")
def listings_buy(listing_id: str, body: BuyGemRequest, request: Request) -> Json:
    res = _marketplace(request).buy(listing_id, body.buyer, body.payment_amount, body.creator)
    return {"ok": True, **res}


@router.post("/marketplace/listings/{listing_id}/bid")
def listings_bid(listing_id: str, body: PlaceBidRequest, request: Request) -> Json:
    res = _marketplace(request).place_bid(listing_id, body.bidder, body.bid_amount)
    return {"ok": True, **res}


@router.post("/marketplace/listings/{listing_id}/end-auction")
def listings_end_auction(listing_id: str, body: EndAuctionRequest, request: Request) -> Json:
    res = _marketplace(request).end_auction(listing_id, body.caller, body.creator)
    return {"ok": True, **res}


@router.delete("/marketplace/listings/{listing_id}")
def listings_cancel(listing_id: str, body: CancelListingRequest, request: Request) -> Json:
    res = _marketplace(request).cancel_listing(listing_id, body.seller)
    return {"ok": True, **res}


@router.get("/marketplace/sales")
def sales_history(request: Request) -> Json:
    return {"ok": True, "sales": _marketplace(request).sales_history()}


@router.get("/marketplace/balance/{address}")
def escrow_balance(address: str, request: Request) -> Json:
    return {"ok": True, "address": address, "balance": _marketplace(request).escrow_balance(address)}


@router.post("/marketplace/withdraw")
def escrow_withdraw(body: WithdrawRequest, request: Request) -> Json:
    res = _marketplace(request).withdraw(body.address)
    return {"ok": True, **res}
