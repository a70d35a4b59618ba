"""FastAPI application entrypoint."""
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Project root (parent of chatrelay/)
_ROOT = Path(__file__).resolve().parent.parent

# Load .env FIRST so AI_API_URL / AI_API_KEY are set before any app code reads them.
# override=True so .env wins (important when uvicorn reload spawns a worker that may not inherit env).
from dotenv import load_dotenv
load_dotenv(_ROOT / ".env", override=True)

# Ensure project root is on path when run as: python chatrelay/main.py
if __name__ == "__main__" or "chatrelay" not in sys.modules:
    if str(_ROOT) not in sys.path:
        sys.path.insert(0, str(_ROOT))

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatrelay.api.routes import router
from chatrelay.core.config import get_settings
from chatrelay.core.errors import RelayError

logging.basicConfig(level=getattr(logging, get_settings().log_level, logging.INFO))
_log = logging.getLogger(__name__)

# Prevent third-party HTTP libs from logging at DEBUG (avoids leaking the upstream API key in headers)
for _name in ("httpx", "httpcore", "hpack", "urllib3"):
    logging.getLogger(_name).setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    missing = settings.missing_upstream()
    if missing:
        raise RuntimeError(f"Set {' and '.join(missing)} environment variables")
    # No timeout: a hung upstream keeps the exchange open until the caller goes away.
    async with httpx.AsyncClient(timeout=None) as client:
        app.state.upstream_client = client
        _log.info("Relaying /api/chat to %s", settings.upstream_url)
        yield


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    if exc.status_code >= 500:
        _log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["POST", "OPTIONS", "GET"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_exception_handler(RelayError, relay_error_handler)
    app.include_router(router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run("chatrelay.main:app", host=settings.host, port=settings.port, reload=True)
