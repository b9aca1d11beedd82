from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from gemmarket.ledger.types import GemRecord

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class NotFound:
    gem_id: str


@dataclass(frozen=True, slots=True)
class Unauthorized:
    """Transfer attempted by an address that is not the current owner."""

    gem_id: str
    owner: str
    caller: str


@dataclass(frozen=True, slots=True)
class MintReceipt:
    gem_id: str
    receipt: str
    record: GemRecord


@dataclass(frozen=True, slots=True)
class TransferReceipt:
    gem_id: str
    receipt: str
    record: GemRecord


LookupOutcome = Union[Ok[GemRecord], NotFound]
TransferOutcome = Union[Ok[TransferReceipt], NotFound, Unauthorized]
