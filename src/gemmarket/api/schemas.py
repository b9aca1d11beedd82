"""Pydantic request schemas for the public API.

These models are the only input validation layer: the gem stores assume
names/addresses are non-empty strings and attribute values are in range.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from gemmarket.ledger.types import ATTRIBUTE_MAX, ATTRIBUTE_MIN, GemAttributes, Rarity

# scheme://rest, e.g. ipfs://Qm..., https://cdn.example/gem.json
METADATA_URI_PATTERN = r"^[A-Za-z][A-Za-z0-9+.-]*://\S+$"


class GemAttributesIn(BaseModel):
    color: str = Field(..., min_length=1)
    rarity: Rarity
    power: int = Field(..., ge=ATTRIBUTE_MIN, le=ATTRIBUTE_MAX)
    shine: int = Field(..., ge=ATTRIBUTE_MIN, le=ATTRIBUTE_MAX)
    durability: int = Field(..., ge=ATTRIBUTE_MIN, le=ATTRIBUTE_MAX)

    def to_attributes(self) -> GemAttributes:
        return GemAttributes(
            color=self.color,
            rarity=self.rarity,
            power=self.power,
            shine=self.shine,
            durability=self.durability,
        )


class MintGemRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    owner: str = Field(..., min_length=1, description="Owner address")
    metadata_uri: Optional[str] = Field(default=None, alias="metadataUri", max_length=2048, pattern=METADATA_URI_PATTERN)
    attributes: Optional[GemAttributesIn] = None

    model_config = {"populate_by_name": True}


class TransferGemRequest(BaseModel):
    from_: str = Field(..., alias="from", min_length=1)
    to: str = Field(..., min_length=1)

    model_config = {"populate_by_name": True}


class CreateListingRequest(BaseModel):
    gem_id: str = Field(..., alias="gemId", min_length=1)
    seller: str = Field(..., min_length=1)
    listing_type: Literal["FixedPrice", "Auction"] = Field(..., alias="listingType")
    price: float = Field(..., gt=0)
    duration_secs: Optional[int] = Field(default=None, alias="durationSecs", gt=0)

    model_config = {"populate_by_name": True}


class BuyGemRequest(BaseModel):
    buyer: str = Field(..., min_length=1)
    payment_amount: float = Field(..., alias="paymentAmount", gt=0)
    creator: str = Field(..., min_length=1)

    model_config = {"populate_by_name": True}


class PlaceBidRequest(BaseModel):
    bidder: str = Field(..., min_length=1)
    bid_amount: float = Field(..., alias="bidAmount", gt=0)

    model_config = {"populate_by_name": True}


class EndAuctionRequest(BaseModel):
    caller: str = Field(..., min_length=1)
    creator: str = Field(..., min_length=1)


class CancelListingRequest(BaseModel):
    seller: str = Field(..., min_length=1)


class WithdrawRequest(BaseModel):
    address: str = Field(..., min_length=1)


class CreateWalletRequest(BaseModel):
    name: str = Field(..., min_length=1)
