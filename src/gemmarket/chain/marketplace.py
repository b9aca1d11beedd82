from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from gemmarket.chain.client import ChainClient
from gemmarket.chain.gem_store import SYSTEM_CALLER
from gemmarket.runtime.event_log import log_event

Json = Dict[str, Any]

log = logging.getLogger("gemmarket.marketplace")


def _now_s() -> int:
    return int(time.time())


class MarketplaceService:
    """Proxy for the marketplace contract.

    Listing state, bids, settlement, royalties and escrow all live in the
    contract; this class only shapes arguments and unpacks results.
    """

    def __init__(self, client: ChainClient, contract_id: str) -> None:
        self.client = client
        self.contract_id = contract_id

    def _call(self, method: str, args: Json, caller: str = SYSTEM_CALLER) -> Json:
        return self.client.invoke(self.contract_id, method, args, caller)

    def create_listing(
        self,
        gem_id: str,
        seller: str,
        listing_type: str,
        price: float,
        duration_secs: Optional[int] = None,
    ) -> Json:
        res = self._call(
            "create_listing",
            {
                "gem_id": gem_id,
                "seller": seller,
                "listing_type": listing_type,
                "price": price,
                "duration_secs": duration_secs,
                "timestamp": _now_s(),
            },
            caller=seller,
        )
        log_event(log, "listing_created", listing_id=res.get("listing_id"), gem_id=gem_id, seller=seller)
        return {"listing_id": res.get("listing_id"), "transaction_id": res.get("transaction_id")}

    def buy(self, listing_id: str, buyer: str, payment_amount: float, creator: str) -> Json:
        res = self._call(
            "buy",
            {
                "listing_id": listing_id,
                "buyer": buyer,
                "payment_amount": payment_amount,
                "timestamp": _now_s(),
                "creator": creator,
            },
            caller=buyer,
        )
        log_event(log, "listing_bought", listing_id=listing_id, buyer=buyer, sale_id=res.get("sale_id"))
        return {"sale_id": res.get("sale_id"), "transaction_id": res.get("transaction_id")}

    def place_bid(self, listing_id: str, bidder: str, bid_amount: float) -> Json:
        res = self._call(
            "place_bid",
            {"listing_id": listing_id, "bidder": bidder, "bid_amount": bid_amount, "timestamp": _now_s()},
            caller=bidder,
        )
        log_event(log, "bid_placed", listing_id=listing_id, bidder=bidder, amount=bid_amount)
        return {"transaction_id": res.get("transaction_id")}

    def end_auction(self, listing_id: str, caller: str, creator: str) -> Json:
        res = self._call(
            "end_auction",
            {"listing_id": listing_id, "timestamp": _now_s(), "creator": creator},
            caller=caller,
        )
        log_event(log, "auction_ended", listing_id=listing_id, sale_id=res.get("sale_id"))
        return {"sale_id": res.get("sale_id"), "transaction_id": res.get("transaction_id")}

    def cancel_listing(self, listing_id: str, seller: str) -> Json:
        res = self._call("cancel_listing", {"listing_id": listing_id, "seller": seller}, caller=seller)
        log_event(log, "listing_cancelled", listing_id=listing_id, seller=seller)
        return {"transaction_id": res.get("transaction_id")}

    def active_listings(self) -> List[Json]:
        listings = self._call("get_active_listings", {}).get("listings")
        return listings if isinstance(listings, list) else []

    def get_listing(self, listing_id: str) -> Optional[Json]:
        listing = self._call("get_listing", {"listing_id": listing_id}).get("listing")
        return listing if isinstance(listing, dict) else None

    def sales_history(self) -> List[Json]:
        sales = self._call("get_sales_history", {}).get("sales")
        return sales if isinstance(sales, list) else []

    def escrow_balance(self, address: str) -> float:
        bal = self._call("get_balance", {"address": address}).get("balance")
        return bal if isinstance(bal, (int, float)) and not isinstance(bal, bool) else 0

    def withdraw(self, address: str) -> Json:
        res = self._call("withdraw", {"address": address}, caller=address)
        log_event(log, "escrow_withdrawn", address=address, amount=res.get("amount"))
        return {"amount": res.get("amount"), "transaction_id": res.get("transaction_id")}
