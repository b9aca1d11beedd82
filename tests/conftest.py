from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

import pytest

# Ensure local "src/" takes precedence over any globally-installed "gemmarket" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)

from gemmarket.chain.client import ChainClient  # noqa: E402
from gemmarket.chain.errors import ChainError  # noqa: E402
from gemmarket.runtime import metrics  # noqa: E402


class FakeChainClient(ChainClient):
    """ChainClient that never touches the network.

    `contract` maps method name -> dict result, callable(args) -> dict, or a
    ChainError to raise. Node-level endpoints read from `node`.
    """

    def __init__(self) -> None:
        super().__init__("http://chain.invalid/api")
        self.contract: Dict[str, Any] = {}
        self.node: Dict[str, Any] = {}
        self.calls: List[Tuple[str, str, Dict[str, Any], str]] = []

    def invoke(self, contract_id: str, method: str, args: Dict[str, Any], caller: str) -> Dict[str, Any]:
        self.calls.append((contract_id, method, dict(args), caller))
        res = self.contract.get(method, {})
        if isinstance(res, ChainError):
            raise res
        if callable(res):
            return res(args)
        return res

    def _node(self, key: str) -> Any:
        res = self.node.get(key)
        if isinstance(res, ChainError):
            raise res
        return res

    def get_blockchain_info(self):
        return self._node("info")

    def get_wallet(self, address: str):
        return self._node("wallet")

    def get_balance(self, address: str):
        return self._node("balance")

    def list_wallets(self):
        return self._node("wallets")

    def create_wallet(self, name: str):
        return {"name": name, **(self._node("new_wallet") or {})}

    def methods_called(self) -> List[str]:
        return [c[1] for c in self.calls]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "GEMMARKET_GEM_BACKEND",
        "GEMMARKET_GEM_CONTRACT_ID",
        "GEMMARKET_MARKETPLACE_CONTRACT_ID",
        "GEMMARKET_CORS_ORIGINS",
        "GEMMARKET_METRICS_ENABLED",
        "GEMMARKET_MAX_REQUEST_BYTES",
        "GEMMARKET_SIZE_LIMIT_DISABLE",
        "GEMMARKET_TRUST_PROXY_HEADERS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GEMMARKET_MODE", "dev")
    metrics.reset()


@pytest.fixture
def fake_chain() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def make_client(fake_chain: FakeChainClient) -> Callable[..., Any]:
    from fastapi.testclient import TestClient

    from gemmarket.api.app import create_app
    from gemmarket.ledger.gem_ledger import GemLedger

    def _make(gem_store=None) -> TestClient:
        app = create_app(gem_store=gem_store if gem_store is not None else GemLedger(), chain_client=fake_chain)
        return TestClient(app)

    return _make
