"""Gem store backed by the gem NFT contract on the chain.

Exposes the same operations and typed outcomes as GemLedger so the HTTP layer
does not care which backend is configured.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from gemmarket.chain.client import ChainClient
from gemmarket.chain.errors import ChainError
from gemmarket.ledger.attributes import generate_attributes
from gemmarket.ledger.gem_ledger import default_metadata_uri
from gemmarket.ledger.outcomes import (
    LookupOutcome,
    MintReceipt,
    NotFound,
    Ok,
    TransferOutcome,
    TransferReceipt,
    Unauthorized,
)
from gemmarket.ledger.types import GemAttributes, GemRecord
from gemmarket.runtime.event_log import log_event
from gemmarket.runtime.metrics import inc_counter

log = logging.getLogger("gemmarket.chain")

# Read-only contract calls are issued on behalf of this caller.
SYSTEM_CALLER = "system"


class ChainGemStore:
    backend = "chain"

    def __init__(self, client: ChainClient, contract_id: str) -> None:
        self.client = client
        self.contract_id = contract_id

    def _call(self, method: str, args: Dict[str, Any], caller: str = SYSTEM_CALLER) -> Dict[str, Any]:
        return self.client.invoke(self.contract_id, method, args, caller)

    def mint(
        self,
        name: str,
        owner: str,
        attributes: Optional[GemAttributes] = None,
        metadata_uri: Optional[str] = None,
    ) -> MintReceipt:
        attrs = attributes if attributes is not None else generate_attributes()
        uri = metadata_uri or default_metadata_uri()
        created_at = int(time.time())

        res = self._call(
            "mint",
            {
                "name": name,
                "owner": owner,
                "attributes": attrs.to_dict(),
                "metadata_uri": uri,
                "timestamp": created_at,
            },
            caller=owner,
        )
        gem_id = str(res.get("gem_id") or "").strip()
        if not gem_id:
            raise ChainError("bad_response", "mint returned no gem_id", {"raw": res})

        record = GemRecord(
            id=gem_id,
            name=name,
            owner=owner,
            creator=owner,
            attributes=attrs,
            metadata_uri=uri,
            created_at=created_at,
            transfer_count=0,
        )
        receipt = str(res.get("transaction_id") or "")
        inc_counter("gems_minted")
        log_event(log, "gem_minted", gem_id=gem_id, owner=owner, rarity=attrs.rarity, receipt=receipt)
        return MintReceipt(gem_id=gem_id, receipt=receipt, record=record)

    def _reject(self, gem_id: str, owner: str, caller: str) -> Unauthorized:
        inc_counter("gem_transfers_rejected")
        log_event(
            log,
            "gem_transfer_rejected",
            level=logging.WARNING,
            gem_id=gem_id,
            caller=caller,
            reason="not_owner",
        )
        return Unauthorized(gem_id=gem_id, owner=owner, caller=caller)

    def transfer(self, gem_id: str, from_addr: str, to_addr: str) -> TransferOutcome:
        current = self.get(gem_id)
        if isinstance(current, NotFound):
            return current
        if current.value.owner != from_addr:
            return self._reject(gem_id, current.value.owner, from_addr)

        try:
            res = self._call("transfer", {"gem_id": gem_id, "from": from_addr, "to": to_addr}, caller=from_addr)
        except ChainError:
            # A concurrent transfer can land between the read and the call; the
            # contract then refuses the stale owner.
            after = self.get(gem_id)
            if isinstance(after, Ok) and after.value.owner != from_addr:
                return self._reject(gem_id, after.value.owner, from_addr)
            raise

        receipt = str(res.get("transaction_id") or "")
        updated = current.value.transferred_to(to_addr)
        inc_counter("gems_transferred")
        log_event(log, "gem_transferred", gem_id=gem_id, from_addr=from_addr, to_addr=to_addr, receipt=receipt)
        return Ok(TransferReceipt(gem_id=gem_id, receipt=receipt, record=updated))

    def get(self, gem_id: str) -> LookupOutcome:
        res = self._call("get_gem", {"gem_id": gem_id})
        gem = res.get("gem")
        if not isinstance(gem, dict):
            return NotFound(gem_id)
        return Ok(GemRecord.from_dict(gem))

    def list_by_owner(self, owner: str) -> List[GemRecord]:
        res = self._call("get_gems_by_owner", {"owner": owner})
        gems = res.get("gems")
        if not isinstance(gems, list):
            return []
        return [GemRecord.from_dict(g) for g in gems if isinstance(g, dict)]

    def total_supply(self) -> int:
        res = self._call("total_supply", {})
        return int(res.get("total_supply") or 0)

    def verify_ownership(self, gem_id: str, address: str) -> bool:
        try:
            res = self._call("is_owner", {"gem_id": gem_id, "address": address})
        except ChainError:
            return False
        return bool(res.get("is_owner", False))
