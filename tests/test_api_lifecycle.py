from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from gemmarket.api.app import build_gem_store, create_app
from gemmarket.api.config import load_api_config
from gemmarket.chain.gem_store import ChainGemStore
from gemmarket.ledger.gem_ledger import GemLedger


def test_default_app_uses_in_memory_ledger() -> None:
    app = create_app()
    assert isinstance(app.state.gem_store, GemLedger)
    assert app.state.cfg.gem_backend == "memory"

    with TestClient(app) as client:
        assert client.get("/v1/health").status_code == 200


def test_chain_backend_selected_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMMARKET_GEM_BACKEND", "chain")
    monkeypatch.setenv("GEMMARKET_GEM_CONTRACT_ID", "gem_nft_v1")
    monkeypatch.setenv("GEMMARKET_CHAIN_API_URL", "http://node.test/api")

    app = create_app()
    store = app.state.gem_store
    assert isinstance(store, ChainGemStore)
    assert store.contract_id == "gem_nft_v1"
    assert app.state.chain_client.base_url == "http://node.test/api"


def test_unknown_backend_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMMARKET_GEM_BACKEND", "sqlite")
    with pytest.raises(RuntimeError):
        load_api_config()


def test_injected_store_is_used_as_is(fake_chain) -> None:
    ledger = GemLedger()
    ledger.mint("Ruby", "alice")

    app = create_app(gem_store=ledger, chain_client=fake_chain)
    assert app.state.gem_store is ledger
    with TestClient(app) as client:
        assert client.get("/v1/gems/stats/supply").json()["total_supply"] == 1


def test_each_app_gets_a_fresh_ledger() -> None:
    cfg = load_api_config()
    a = build_gem_store(cfg, client=None)  # type: ignore[arg-type]
    b = build_gem_store(cfg, client=None)  # type: ignore[arg-type]
    assert a is not b
    a.mint("Ruby", "alice")
    assert b.total_supply() == 0


def test_chain_timeout_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMMARKET_CHAIN_TIMEOUT_S", "nonsense")
    assert load_api_config().chain_timeout_s == 30.0
    monkeypatch.setenv("GEMMARKET_CHAIN_TIMEOUT_S", "7.5")
    assert load_api_config().chain_timeout_s == 7.5


def test_wildcard_cors_rejected_in_prod(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMMARKET_MODE", "prod")
    monkeypatch.setenv("GEMMARKET_CORS_ORIGINS", "*")
    with pytest.raises(RuntimeError):
        create_app()


def test_cors_allowlist_applies(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMMARKET_CORS_ORIGINS", "http://localhost:5173")
    client = TestClient(create_app())
    r = client.get("/v1/health", headers={"Origin": "http://localhost:5173"})
    assert r.headers.get("access-control-allow-origin") == "http://localhost:5173"


def test_prod_mode_hides_docs(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMMARKET_MODE", "prod")
    client = TestClient(create_app())
    assert client.get("/docs").status_code == 404
