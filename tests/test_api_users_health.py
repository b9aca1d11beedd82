from __future__ import annotations

from gemmarket.chain.errors import ChainError
from gemmarket.ledger.gem_ledger import GemLedger


def test_user_profile_combines_wallet_gems_and_balances(fake_chain, make_client) -> None:
    ledger = GemLedger()
    gem_id = ledger.mint("Ruby", "addr1").gem_id
    ledger.mint("Jade", "someone-else")

    fake_chain.node["wallet"] = {"address": "addr1", "name": "main"}
    fake_chain.node["balance"] = {"balance": 100}
    fake_chain.contract["get_balance"] = {"balance": 25}
    c = make_client(ledger)

    r = c.get("/v1/users/addr1")
    assert r.status_code == 200
    j = r.json()
    assert j["wallet"] == {"address": "addr1", "name": "main"}
    assert [g["id"] for g in j["gems"]] == [gem_id]
    assert j["balance"] == {"blockchain": 100, "escrow": 25, "total": 125}


def test_wallet_create_and_list(fake_chain, make_client) -> None:
    fake_chain.node["new_wallet"] = {"address": "abc123"}
    fake_chain.node["wallets"] = [{"address": "abc123"}]
    c = make_client()

    r = c.post("/v1/users/wallet", json={"name": "main"})
    assert r.status_code == 201
    assert r.json()["wallet"] == {"name": "main", "address": "abc123"}

    assert c.post("/v1/users/wallet", json={}).status_code == 422
    assert c.get("/v1/users").json() == {"ok": True, "wallets": [{"address": "abc123"}]}


def test_health_reports_memory_backend(make_client) -> None:
    c = make_client()
    c.post("/v1/gems/mint", json={"name": "Ruby", "owner": "alice"})

    j = c.get("/v1/health").json()
    assert j["ok"] is True
    assert j["status"] == "healthy"
    assert j["gem_backend"] == "memory"
    assert j["total_supply"] == 1


def test_chain_health(fake_chain, make_client) -> None:
    c = make_client()

    fake_chain.node["info"] = {"height": 12, "chain_id": "nchain"}
    r = c.get("/v1/health/chain")
    assert r.status_code == 200
    assert r.json()["chain"] == {"connected": True, "height": 12, "chain_id": "nchain"}

    fake_chain.node["info"] = ChainError("url_error", "connection refused")
    r = c.get("/v1/health/chain")
    assert r.status_code == 503
    j = r.json()
    assert j["ok"] is False
    assert j["status"] == "unhealthy"
    assert j["chain"]["connected"] is False


def test_metrics_disabled_by_default(make_client) -> None:
    assert make_client().get("/v1/metrics").status_code == 404


def test_metrics_count_ledger_activity(monkeypatch, make_client) -> None:
    monkeypatch.setenv("GEMMARKET_METRICS_ENABLED", "1")
    c = make_client()
    gem_id = c.post("/v1/gems/mint", json={"name": "Ruby", "owner": "alice"}).json()["gem_id"]
    c.post(f"/v1/gems/{gem_id}/transfer", json={"from": "alice", "to": "bob"})
    c.post(f"/v1/gems/{gem_id}/transfer", json={"from": "alice", "to": "bob"})

    r = c.get("/v1/metrics")
    assert r.status_code == 200
    text = r.text
    assert "gemmarket_gems_minted 1" in text
    assert "gemmarket_gems_transferred 1" in text
    assert "gemmarket_gem_transfers_rejected 1" in text
    assert "gemmarket_gem_total_supply 1" in text


def test_supply_gauge_reflects_only_the_app_store(monkeypatch, make_client) -> None:
    monkeypatch.setenv("GEMMARKET_METRICS_ENABLED", "1")
    app_ledger = GemLedger()
    app_ledger.mint("Ruby", "alice")
    c = make_client(app_ledger)

    other = GemLedger()
    for i in range(3):
        other.mint(f"g{i}", "bob")

    text = c.get("/v1/metrics").text
    assert "gemmarket_gem_total_supply 1\n" in text
    assert "gemmarket_gems_minted 4\n" in text
