"""gemmarket.ledger.gem_ledger

In-process gem ownership ledger.

Used as the gem store when no chain is configured (GEMMARKET_GEM_BACKEND=memory).
State lives for the lifetime of the process only: a restart loses every
minted gem.

Concurrency:
  A single RLock guards the whole map. mint (id allocation + insert) and
  transfer (read owner, compare, write) each run entirely under the lock, so
  two racing transfers of the same gem cannot both succeed; the loser sees
  Unauthorized because its `from` no longer matches.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
import uuid
from typing import Dict, List, Optional

from gemmarket.ledger.attributes import generate_attributes
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

log = logging.getLogger("gemmarket.ledger")


def _new_gem_id() -> str:
    return f"gem-{time.time_ns()}-{secrets.token_hex(4)}"


def _new_receipt() -> str:
    return f"mem-{uuid.uuid4().hex}"


def default_metadata_uri() -> str:
    return f"ipfs://gem-{int(time.time() * 1000)}"


class GemLedger:
    backend = "memory"

    def __init__(self) -> None:
        self._lock = threading.RLock()
        # dicts keep insertion order; list_by_owner relies on it
        self._gems: Dict[str, GemRecord] = {}

    def mint(
        self,
        name: str,
        owner: str,
        attributes: Optional[GemAttributes] = None,
        metadata_uri: Optional[str] = None,
    ) -> MintReceipt:
        attrs = attributes if attributes is not None else generate_attributes()
        uri = metadata_uri or default_metadata_uri()

        with self._lock:
            gem_id = _new_gem_id()
            while gem_id in self._gems:
                gem_id = _new_gem_id()

            record = GemRecord(
                id=gem_id,
                name=name,
                owner=owner,
                creator=owner,
                attributes=attrs,
                metadata_uri=uri,
                created_at=int(time.time()),
                transfer_count=0,
            )
            self._gems[gem_id] = record

        receipt = _new_receipt()
        inc_counter("gems_minted")
        log_event(log, "gem_minted", gem_id=gem_id, owner=owner, rarity=attrs.rarity, receipt=receipt)
        return MintReceipt(gem_id=gem_id, receipt=receipt, record=record)

    def transfer(self, gem_id: str, from_addr: str, to_addr: str) -> TransferOutcome:
        with self._lock:
            current = self._gems.get(gem_id)
            if current is None:
                return NotFound(gem_id)
            if current.owner != from_addr:
                outcome = Unauthorized(gem_id=gem_id, owner=current.owner, caller=from_addr)
            else:
                updated = current.transferred_to(to_addr)
                self._gems[gem_id] = updated
                outcome = None

        if outcome is not None:
            inc_counter("gem_transfers_rejected")
            log_event(
                log,
                "gem_transfer_rejected",
                level=logging.WARNING,
                gem_id=gem_id,
                caller=from_addr,
                reason="not_owner",
            )
            return outcome

        receipt = _new_receipt()
        inc_counter("gems_transferred")
        log_event(
            log,
            "gem_transferred",
            gem_id=gem_id,
            from_addr=from_addr,
            to_addr=to_addr,
            transfer_count=updated.transfer_count,
            receipt=receipt,
        )
        return Ok(TransferReceipt(gem_id=gem_id, receipt=receipt, record=updated))

    def get(self, gem_id: str) -> LookupOutcome:
        with self._lock:
            rec = self._gems.get(gem_id)
        if rec is None:
            return NotFound(gem_id)
        return Ok(rec)

    def list_by_owner(self, owner: str) -> List[GemRecord]:
        with self._lock:
            return [g for g in self._gems.values() if g.owner == owner]

    def total_supply(self) -> int:
        # no deletion exists, so the map size is the mint count
        with self._lock:
            return len(self._gems)

    def verify_ownership(self, gem_id: str, address: str) -> bool:
        with self._lock:
            rec = self._gems.get(gem_id)
            return rec is not None and rec.owner == address
