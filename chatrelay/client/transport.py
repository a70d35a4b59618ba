"""HTTP side of the chat client: POST /api/chat and hand back the body as a result value."""
import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass

import requests

from chatrelay.core.errors import DecodeError, ErrorKind, RelayError, TransportError, UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchStream:
    """Body arrives incrementally; iterating reads from the network."""

    chunks: Iterator[bytes]


@dataclass(frozen=True)
class FetchReply:
    """Whole reply, from a provider that answered with {"reply": ...}."""

    text: str


@dataclass(frozen=True)
class FetchFailed:
    kind: ErrorKind
    message: str

    @classmethod
    def from_error(cls, error: RelayError) -> "FetchFailed":
        return cls(error.kind, error.message)


FetchResult = FetchStream | FetchReply | FetchFailed


def reply_from_json(raw: str) -> str:
    data = json.loads(raw)
    if isinstance(data, dict) and data.get("reply") is not None:
        return str(data["reply"])
    return raw


class HttpChatTransport:
    """Talks to the relay server with requests, streaming the response body."""

    def __init__(self, base_url: str, session: requests.Session | None = None):
        self.url = f"{base_url.rstrip('/')}/api/chat"
        self._http = session or requests.Session()

    def fetch(self, message: str) -> FetchResult:
        try:
            resp = self._http.post(self.url, json={"message": message}, stream=True)
        except requests.RequestException as e:
            logger.warning("Chat request failed: %s", e)
            return FetchFailed.from_error(TransportError(str(e) or "Unexpected error"))

        if not 200 <= resp.status_code < 300:
            resp.close()
            return FetchFailed.from_error(UpstreamError(f"Server error {resp.status_code}", resp.status_code))

        content_type = (resp.headers.get("Content-Type") or "").split(";")[0].strip().lower()
        if content_type == "application/json":
            try:
                return FetchReply(reply_from_json(resp.content.decode("utf-8")))
            except requests.RequestException as e:
                return FetchFailed.from_error(TransportError(str(e) or "Connection lost"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                return FetchFailed.from_error(DecodeError(f"Malformed reply: {e}"))
            finally:
                resp.close()
        return FetchStream(self._iter_chunks(resp))

    def _iter_chunks(self, resp: requests.Response) -> Iterator[bytes]:
        # chunk_size=None yields data as it arrives instead of filling fixed-size blocks
        try:
            for chunk in resp.iter_content(chunk_size=None):
                if chunk:
                    yield chunk
        except requests.RequestException as e:
            raise TransportError(str(e) or "Connection lost") from e
        finally:
            resp.close()
