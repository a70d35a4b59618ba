import pytest
import requests

from chatrelay.client.session import ClientSession, SessionState
from chatrelay.client.transport import FetchFailed, FetchReply, FetchStream, HttpChatTransport
from chatrelay.core.errors import ErrorKind, TransportError


class FakeResponse:
    def __init__(self, status_code=200, headers=None, chunks=(), error=None):
        self.status_code = status_code
        self.headers = headers or {"Content-Type": "text/plain; charset=utf-8"}
        self._chunks = list(chunks)
        self._error = error
        self.closed = False

    @property
    def content(self):
        return b"".join(self._chunks)

    def iter_content(self, chunk_size=None):
        assert chunk_size is None
        yield from self._chunks
        if self._error is not None:
            raise self._error

    def close(self):
        self.closed = True


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def test_posts_message_to_chat_endpoint():
    http = FakeSession(FakeResponse(chunks=[b"x"]))
    HttpChatTransport("http://localhost:3000/", session=http).fetch("Hello")
    assert http.calls == [("http://localhost:3000/api/chat", {"json": {"message": "Hello"}, "stream": True})]


def test_streamed_body_is_yielded_chunk_by_chunk():
    response = FakeResponse(chunks=[b"Hi", b"", b" there"])
    result = HttpChatTransport("http://relay", session=FakeSession(response)).fetch("Hello")

    assert isinstance(result, FetchStream)
    assert list(result.chunks) == [b"Hi", b" there"]
    assert response.closed


def test_broken_stream_raises_transport_error():
    response = FakeResponse(chunks=[b"Partial"], error=requests.exceptions.ChunkedEncodingError("Connection broken"))
    result = HttpChatTransport("http://relay", session=FakeSession(response)).fetch("Hello")

    chunks = iter(result.chunks)
    assert next(chunks) == b"Partial"
    with pytest.raises(TransportError, match="Connection broken"):
        next(chunks)
    assert response.closed


def test_json_reply_is_returned_whole():
    response = FakeResponse(headers={"Content-Type": "application/json"}, chunks=[b'{"reply": "Hello!"}'])
    result = HttpChatTransport("http://relay", session=FakeSession(response)).fetch("Hi")
    assert result == FetchReply("Hello!")
    assert response.closed


def test_json_without_reply_field_is_shown_as_is():
    response = FakeResponse(headers={"Content-Type": "application/json"}, chunks=[b'{"answer": 42}'])
    result = HttpChatTransport("http://relay", session=FakeSession(response)).fetch("Hi")
    assert result == FetchReply('{"answer": 42}')


def test_malformed_json_is_a_decode_failure():
    response = FakeResponse(headers={"Content-Type": "application/json"}, chunks=[b"{oops"])
    result = HttpChatTransport("http://relay", session=FakeSession(response)).fetch("Hi")
    assert isinstance(result, FetchFailed)
    assert result.kind is ErrorKind.DECODE


def test_non_ok_status_is_a_failure():
    response = FakeResponse(status_code=500, chunks=[b"boom"])
    result = HttpChatTransport("http://relay", session=FakeSession(response)).fetch("Hi")
    assert result == FetchFailed(ErrorKind.UPSTREAM, "Server error 500")
    assert response.closed


def test_connection_error_is_a_transport_failure():
    http = FakeSession(error=requests.exceptions.ConnectionError("Connection refused"))
    result = HttpChatTransport("http://relay", session=http).fetch("Hi")
    assert result == FetchFailed(ErrorKind.TRANSPORT, "Connection refused")


@pytest.mark.parametrize("status_code", [300, 302, 304])
def test_redirect_status_is_a_failure(status_code):
    response = FakeResponse(status_code=status_code, headers={"Content-Type": "text/html"}, chunks=[b"<html>Not Modified</html>"])
    result = HttpChatTransport("http://relay", session=FakeSession(response)).fetch("Hi")
    assert result == FetchFailed(ErrorKind.UPSTREAM, f"Server error {status_code}")
    assert response.closed


def test_redirect_status_fails_the_exchange():
    response = FakeResponse(status_code=300, headers={"Content-Type": "text/html"}, chunks=[b"<html>Not Modified</html>"])
    session = ClientSession(HttpChatTransport("http://relay", session=FakeSession(response)))

    exchange = session.submit("Hello")

    assert exchange.outcome is SessionState.FAILED
    assert exchange.assistant.content == "Error: Server error 300"
