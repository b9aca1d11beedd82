import logging
import os
from dataclasses import dataclass

from gemmarket.chain.client import DEFAULT_CHAIN_API_URL

log = logging.getLogger("gemmarket.config")

GEM_BACKENDS = ("memory", "chain")


@dataclass(frozen=True)
class ApiConfig:
    mode: str  # "dev" | "testnet" | "prod"
    gem_backend: str  # "memory" | "chain"
    chain_api_url: str
    chain_timeout_s: float
    gem_contract_id: str
    marketplace_contract_id: str


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return float(default)
    try:
        return float(raw)
    except ValueError:
        return float(default)


def load_api_config() -> ApiConfig:
    mode = (os.getenv("GEMMARKET_MODE") or "prod").strip().lower()

    backend = (os.getenv("GEMMARKET_GEM_BACKEND") or "memory").strip().lower()
    if backend not in GEM_BACKENDS:
        raise RuntimeError(f"GEMMARKET_GEM_BACKEND must be one of {GEM_BACKENDS}, got {backend!r}")

    gem_contract = (os.getenv("GEMMARKET_GEM_CONTRACT_ID") or "").strip()
    market_contract = (os.getenv("GEMMARKET_MARKETPLACE_CONTRACT_ID") or "").strip()

    if backend == "chain" and not gem_contract:
        log.warning("GEMMARKET_GEM_CONTRACT_ID not set; chain gem calls will fail")
    if not market_contract:
        log.warning("GEMMARKET_MARKETPLACE_CONTRACT_ID not set; marketplace calls will fail")

    return ApiConfig(
        mode=mode,
        gem_backend=backend,
        chain_api_url=(os.getenv("GEMMARKET_CHAIN_API_URL") or DEFAULT_CHAIN_API_URL).strip(),
        chain_timeout_s=max(1.0, _env_float("GEMMARKET_CHAIN_TIMEOUT_S", 30.0)),
        gem_contract_id=gem_contract,
        marketplace_contract_id=market_contract,
    )
