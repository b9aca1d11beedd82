# src/gemmarket/api/__main__.py
from __future__ import annotations

import os

import uvicorn

from gemmarket.env import load_dotenv_if_present


def main() -> None:
    # Load .env early so GEMMARKET_* vars exist before anything reads them.
    load_dotenv_if_present()

    # Import after dotenv load (config is read inside create_app)
    from gemmarket.api.app import create_app
    from gemmarket.api.structured_logging import configure_structured_logging

    configure_structured_logging()

    host = os.getenv("GEMMARKET_API_HOST", "127.0.0.1")
    port = int(os.getenv("GEMMARKET_API_PORT", "3000"))

    uvicorn.run(create_app(), host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
