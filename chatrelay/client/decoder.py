"""Incremental UTF-8 decoding of a chunked byte stream.

Chunk boundaries fall wherever the network puts them, often in the middle of a
multi-byte character. The decoder keeps the incomplete tail of one chunk and
prepends it to the next, so a split character comes out whole.
"""
import codecs
from collections.abc import Iterable, Iterator

from chatrelay.core.errors import DecodeError


class TransportDecoder:
    """Stateful bytes -> text decoder for one response body."""

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="strict")

    def feed(self, chunk: bytes) -> str:
        """Decode one chunk. Returns "" while only a partial character is buffered."""
        try:
            return self._decoder.decode(chunk, final=False)
        except UnicodeDecodeError as e:
            raise DecodeError(f"Invalid response encoding: {e.reason}") from e

    def flush(self) -> str:
        """Decode whatever is still buffered at end of stream; a truncated character is an error."""
        try:
            return self._decoder.decode(b"", final=True)
        except UnicodeDecodeError as e:
            raise DecodeError(f"Response ended inside a character: {e.reason}") from e


def iter_text(chunks: Iterable[bytes], encoding: str = "utf-8") -> Iterator[str]:
    """Lazily turn byte chunks into text increments, in order. Empty increments are skipped."""
    decoder = TransportDecoder(encoding)
    for chunk in chunks:
        text = decoder.feed(chunk)
        if text:
            yield text
    tail = decoder.flush()
    if tail:
        yield tail
