# src/gemmarket/chain/client.py
from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Optional

from gemmarket.chain.errors import ChainError
from gemmarket.runtime.event_log import log_event
from gemmarket.runtime.metrics import inc_counter

Json = Dict[str, Any]

log = logging.getLogger("gemmarket.chain")

DEFAULT_CHAIN_API_URL = "http://localhost:8080/api"


class ChainClient:
    """JSON-over-HTTP client for the blockchain node API.

    Every call either returns the decoded JSON body or raises ChainError:
      - url_error:   node unreachable / timeout
      - http_error:  non-2xx status (body kept in details)
      - bad_json:    2xx with a body that is not JSON
    """

    def __init__(self, base_url: str = DEFAULT_CHAIN_API_URL, *, timeout_s: float = 30.0) -> None:
        self.base_url = str(base_url or DEFAULT_CHAIN_API_URL).rstrip("/")
        self.timeout_s = float(timeout_s)

    def _request(self, method: str, path: str, body: Optional[Json] = None) -> Any:
        method = method.upper().strip()
        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        data = json.dumps(body).encode("utf-8") if body is not None else None

        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_s) as resp:
                raw = resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as e:
            try:
                raw_err = e.read().decode("utf-8", errors="replace")
            except OSError:
                raw_err = ""
            status = int(getattr(e, "code", 0) or 0)
            self._log_failure(method, path, "http_error", status=status, body=raw_err[:500])
            raise ChainError("http_error", f"{method} {path} returned {status}", {"status": status, "raw": raw_err}) from e
        except (urllib.error.URLError, TimeoutError, ConnectionError) as e:
            reason = str(getattr(e, "reason", e))
            self._log_failure(method, path, "url_error", reason=reason)
            raise ChainError("url_error", reason, {"url": url}) from e

        if not raw.strip():
            return {}
        try:
            return json.loads(raw)
        except ValueError as e:
            self._log_failure(method, path, "bad_json", body=raw[:200])
            raise ChainError("bad_json", f"{method} {path} returned non-JSON body", {"raw": raw[:200]}) from e

    def _log_failure(self, method: str, path: str, code: str, **fields: Any) -> None:
        inc_counter("chain_errors")
        log_event(log, "chain_request_failed", level=logging.ERROR, method=method, path=path, code=code, **fields)

    # ---- node info ----

    def get_blockchain_info(self) -> Json:
        return self._request("GET", "/blockchain/info")

    # ---- contracts ----

    def deploy_contract(self, name: str, bytecode: str, owner: str) -> Json:
        return self._request("POST", "/contracts", {"name": name, "bytecode": bytecode, "owner": owner})

    def invoke(self, contract_id: str, method: str, args: Json, caller: str) -> Json:
        cid = urllib.parse.quote(str(contract_id or ""), safe="")
        if not cid:
            raise ChainError("no_contract", f"contract id not configured for {method}")
        out = self._request(
            "POST",
            f"/contracts/{cid}/call",
            {"function": method, "args": args, "caller": caller},
        )
        if not isinstance(out, dict):
            raise ChainError("bad_response", f"{method} returned {type(out).__name__}", {"raw": out})
        return out

    # ---- transactions ----

    def create_transaction(self, from_addr: str, to_addr: str, amount: float, data: Optional[str] = None) -> Json:
        return self._request("POST", "/transactions", {"from": from_addr, "to": to_addr, "amount": amount, "data": data})

    def get_transaction(self, tx_id: str) -> Json:
        return self._request("GET", f"/transactions/{urllib.parse.quote(tx_id, safe='')}")

    def get_recent_transactions(self, limit: int = 10) -> Any:
        return self._request("GET", f"/transactions?{urllib.parse.urlencode({'limit': int(limit)})}")

    # ---- wallets ----

    def get_balance(self, address: str) -> Any:
        return self._request("GET", f"/balance/{urllib.parse.quote(address, safe='')}")

    def create_wallet(self, name: str) -> Json:
        return self._request("POST", "/wallets", {"name": name})

    def get_wallet(self, address: str) -> Json:
        return self._request("GET", f"/wallets/{urllib.parse.quote(address, safe='')}")

    def list_wallets(self) -> Any:
        return self._request("GET", "/wallets")
