from __future__ import annotations

import json
import logging
import os

import pytest

import gemmarket.env as env_mod
from gemmarket.runtime.event_log import log_event


def _events(caplog: pytest.LogCaptureFixture, logger_name: str) -> list:
    out = []
    for rec in caplog.records:
        if rec.name == logger_name:
            out.append(json.loads(rec.getMessage()))
    return out


def test_log_event_emits_single_json_line(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("gemmarket.test")
    with caplog.at_level(logging.INFO, logger="gemmarket.test"):
        log_event(logger, "gem_minted", gem_id="gem-1", owner="alice")

    (ev,) = _events(caplog, "gemmarket.test")
    assert ev["event"] == "gem_minted"
    assert ev["gem_id"] == "gem-1"
    assert isinstance(ev["ts_ms"], int)


def test_log_event_tolerates_unserializable_fields(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("gemmarket.test")
    with caplog.at_level(logging.INFO, logger="gemmarket.test"):
        log_event(logger, "odd", thing=object())
    assert caplog.records[-1].getMessage().startswith("event=odd")


def test_request_log_echoes_request_id(caplog: pytest.LogCaptureFixture, make_client) -> None:
    c = make_client()
    with caplog.at_level(logging.INFO, logger="gemmarket.http"):
        r = c.get("/v1/gems/stats/supply", headers={"x-request-id": "req-42"})

    assert r.headers["x-request-id"] == "req-42"
    events = [e for e in _events(caplog, "gemmarket.http") if e["event"] == "http_request"]
    assert events[-1]["request_id"] == "req-42"
    assert events[-1]["status"] == 200
    assert events[-1]["path"] == "/v1/gems/stats/supply"


def test_request_log_can_be_disabled(monkeypatch, caplog: pytest.LogCaptureFixture, make_client) -> None:
    monkeypatch.setenv("GEMMARKET_LOG_REQUESTS", "0")
    c = make_client()
    with caplog.at_level(logging.INFO, logger="gemmarket.http"):
        c.get("/v1/gems/stats/supply")
    assert _events(caplog, "gemmarket.http") == []


def test_dotenv_loads_once_without_overriding(monkeypatch, tmp_path) -> None:
    dotenv = tmp_path / ".env"
    dotenv.write_text("GEMMARKET_API_PORT=4100\nGEMMARKET_MODE=testnet\n", encoding="utf-8")

    monkeypatch.setattr(env_mod, "_LOADED", False)
    monkeypatch.delenv("GEMMARKET_API_PORT", raising=False)
    monkeypatch.setenv("GEMMARKET_MODE", "dev")

    assert env_mod.load_dotenv_if_present(str(dotenv)) is True
    assert os.environ["GEMMARKET_API_PORT"] == "4100"
    assert os.environ["GEMMARKET_MODE"] == "dev"
    assert env_mod.load_dotenv_if_present(str(dotenv)) is False

    monkeypatch.delenv("GEMMARKET_API_PORT", raising=False)


def test_dotenv_missing_file(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(env_mod, "_LOADED", False)
    assert env_mod.load_dotenv_if_present(str(tmp_path / "nope.env")) is False


def test_request_log_carries_route_and_gem_fields(monkeypatch, caplog: pytest.LogCaptureFixture, make_client) -> None:
    monkeypatch.setenv("GEMMARKET_METRICS_ENABLED", "1")
    c = make_client()
    gem_id = c.post("/v1/gems/mint", json={"name": "Ruby", "owner": "alice"}).json()["gem_id"]

    with caplog.at_level(logging.INFO, logger="gemmarket.http"):
        c.get(f"/v1/gems/{gem_id}")

    ev = [e for e in _events(caplog, "gemmarket.http") if e["event"] == "http_request"][-1]
    assert ev["path"] == f"/v1/gems/{gem_id}"
    assert ev["route"] == "/v1/gems/{gem_id}"
    assert ev["gem_id"] == gem_id
    assert ev["gem_backend"] == "memory"

    assert "gemmarket_http_requests 2\n" in c.get("/v1/metrics").text
