#!/usr/bin/env python3
"""Run the relay server. Usage: python run_api.py. Set HOST=0.0.0.0 to allow network access."""
import logging
import sys
from pathlib import Path

# Project root = directory containing this file. Load .env first so env vars are set
# before uvicorn (and the reload worker) start. override=True so .env wins over shell env.
_ROOT = Path(__file__).resolve().parent
_env_path = _ROOT / ".env"
from dotenv import load_dotenv
load_dotenv(_env_path, override=True)

import uvicorn

from chatrelay.core.config import get_settings

logger = logging.getLogger("run_api")


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()
    missing = settings.missing_upstream()
    if missing:
        logger.error("Set %s environment variables", " and ".join(missing))
        return 1
    logger.info("Server running on http://%s:%s", settings.host, settings.port)
    uvicorn.run(
        "chatrelay.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
