"""
Upstream call and byte-transparent relay of its response.

The relay never looks inside the payload. A sized upstream body (Content-Length)
is read whole and returned as one payload; anything else is piped chunk by chunk
as raw bytes, one ASGI send per upstream read, so a slow caller slows the upstream
read down and a disconnected caller stops it.
"""
import logging
from collections.abc import AsyncIterator

import httpx
from fastapi.responses import Response, StreamingResponse
from starlette.background import BackgroundTask

from chatrelay.core.config import Settings
from chatrelay.core.errors import TransportError

logger = logging.getLogger(__name__)


def build_upstream_request(client: httpx.AsyncClient, settings: Settings, message: str) -> httpx.Request:
    """POST the message upstream, asking the provider for a streaming reply."""
    return client.build_request(
        "POST",
        settings.upstream_url,
        json={"message": message, "stream": True},
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {settings.upstream_api_key}",
        },
    )


def is_streamed(upstream: httpx.Response) -> bool:
    """Chunked or close-delimited bodies are relayed incrementally; sized bodies are buffered."""
    return "content-length" not in upstream.headers


def relay_headers(upstream: httpx.Response) -> list[tuple[bytes, bytes]]:
    # Verbatim passthrough, framing headers (Transfer-Encoding, Content-Encoding) included.
    return [(name.lower(), value) for name, value in upstream.headers.raw]


async def _passthrough(upstream: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in upstream.aiter_raw():
            yield chunk
    except httpx.HTTPError as e:
        # Status and headers are already out; aborting the body is all that is left.
        logger.warning("Upstream stream broke mid-response: %s", e)
        raise
    finally:
        await upstream.aclose()


async def _read_whole(upstream: httpx.Response) -> bytes:
    try:
        return b"".join([chunk async for chunk in upstream.aiter_raw()])
    except httpx.HTTPError as e:
        logger.warning("Reading upstream body failed: %s", e)
        raise TransportError(str(e) or "Upstream connection failed") from e
    finally:
        await upstream.aclose()


async def relay_chat(client: httpx.AsyncClient, settings: Settings, message: str) -> Response:
    """Forward one chat message and relay whatever comes back, status and headers included."""
    request = build_upstream_request(client, settings, message)
    try:
        upstream = await client.send(request, stream=True)
    except httpx.HTTPError as e:
        logger.warning("Upstream request failed: %s", e)
        raise TransportError(str(e) or "Upstream connection failed") from e

    streamed = is_streamed(upstream)
    logger.info(
        "Upstream responded %s, relaying %s",
        upstream.status_code,
        "stream" if streamed else "whole body",
    )
    if streamed:
        response = StreamingResponse(
            _passthrough(upstream),
            status_code=upstream.status_code,
            background=BackgroundTask(upstream.aclose),
        )
    else:
        response = Response(content=await _read_whole(upstream), status_code=upstream.status_code)
    response.raw_headers = relay_headers(upstream)
    return response
