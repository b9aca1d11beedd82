"""gemmarket.ledger.types

Gem record model shared by the in-memory ledger, the chain-backed store and
the HTTP layer.

Records are immutable values. A transfer never edits a record in place; the
store swaps in a copy carrying the new owner and transfer count, which keeps
the write-once fields (id, creator, attributes, metadata_uri, created_at)
untouched by construction.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Literal, Tuple

Json = Dict[str, Any]

Rarity = Literal["Common", "Uncommon", "Rare", "Epic", "Legendary", "Mythic"]

# Tier order matters: weighted sampling walks it and the 1-based position is
# the stat multiplier.
RARITY_TIERS: Tuple[str, ...] = ("Common", "Uncommon", "Rare", "Epic", "Legendary", "Mythic")

ATTRIBUTE_MIN: int = 0
ATTRIBUTE_MAX: int = 1000


def rarity_rank(rarity: str) -> int:
    """1-based rank of a rarity tier (Common=1 ... Mythic=6)."""
    return RARITY_TIERS.index(rarity) + 1


@dataclass(frozen=True, slots=True)
class GemAttributes:
    color: str
    rarity: str
    power: int
    shine: int
    durability: int

    def to_dict(self) -> Json:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GemAttributes":
        return cls(
            color=str(d.get("color") or ""),
            rarity=str(d.get("rarity") or "Common"),
            power=int(d.get("power") or 0),
            shine=int(d.get("shine") or 0),
            durability=int(d.get("durability") or 0),
        )


@dataclass(frozen=True, slots=True)
class GemRecord:
    id: str
    name: str
    owner: str
    creator: str
    attributes: GemAttributes
    metadata_uri: str
    created_at: int
    transfer_count: int = 0

    def transferred_to(self, new_owner: str) -> "GemRecord":
        return replace(self, owner=new_owner, transfer_count=self.transfer_count + 1)

    def to_dict(self) -> Json:
        return {
            "id": self.id,
            "name": self.name,
            "owner": self.owner,
            "creator": self.creator,
            "attributes": self.attributes.to_dict(),
            "metadata_uri": self.metadata_uri,
            "created_at": int(self.created_at),
            "transfer_count": int(self.transfer_count),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GemRecord":
        """Build a record from the contract's JSON shape."""
        attrs = d.get("attributes")
        return cls(
            id=str(d.get("id") or ""),
            name=str(d.get("name") or ""),
            owner=str(d.get("owner") or ""),
            creator=str(d.get("creator") or ""),
            attributes=GemAttributes.from_dict(attrs if isinstance(attrs, dict) else {}),
            metadata_uri=str(d.get("metadata_uri") or ""),
            created_at=int(d.get("created_at") or 0),
            transfer_count=int(d.get("transfer_count") or 0),
        )
