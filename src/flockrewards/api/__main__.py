# src/flockrewards/api/__main__.py
from __future__ import annotations

import uvicorn

from flockrewards.env import load_dotenv_if_present


def main() -> None:
    # Load .env early so FLOCK_* vars exist before anything reads them.
    load_dotenv_if_present()

    # Import after dotenv load (prevents "config read before env" surprises)
    from flockrewards.api.app import create_app
    from flockrewards.config import load_calculator_config

    cfg = load_calculator_config()
    uvicorn.run(create_app(cfg), host=cfg.api_host, port=int(cfg.api_port), log_level=cfg.log_level.lower())


if __name__ == "__main__":
    main()
