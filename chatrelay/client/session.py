"""
Client-side chat session: one exchange at a time, reply rendered while it streams.

State: SessionState, owned by the ClientSession instance together with the
in-flight Exchange. Discrete events (Submit, ChunkReceived, StreamEnded, Error)
drive dispatch(); submit() issues the request and feeds the events from the
response. Every transition and every append calls on_change, so a renderer can
draw each partial reply before the next chunk is read from the network.
"""
import logging
from collections.abc import Callable, Iterable
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Protocol

from chatrelay.client.decoder import iter_text
from chatrelay.client.transport import FetchFailed, FetchReply, FetchResult, FetchStream
from chatrelay.core.errors import ErrorKind, RelayError

logger = logging.getLogger(__name__)


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class SessionState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING_RESPONSE = "streaming_response"
    COMPLETED = "completed"
    FAILED = "failed"


class MessageFinalizedError(RuntimeError):
    pass


@dataclass
class ChatMessage:
    role: Role
    content: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_error: bool = False
    final: bool = False

    def append(self, text: str) -> None:
        if self.final:
            raise MessageFinalizedError(f"{self.role.value} message is finalized")
        self.content += text

    def fail(self, description: str) -> None:
        if self.final:
            raise MessageFinalizedError(f"{self.role.value} message is finalized")
        self.content = description
        self.is_error = True
        self.final = True


@dataclass
class Exchange:
    user: ChatMessage
    assistant: ChatMessage
    outcome: Optional[SessionState] = None  # COMPLETED or FAILED once settled


# Events

@dataclass(frozen=True)
class Submit:
    text: str


@dataclass(frozen=True)
class ChunkReceived:
    text: str


@dataclass(frozen=True)
class StreamEnded:
    pass


@dataclass(frozen=True)
class Error:
    kind: ErrorKind
    message: str


Event = Submit | ChunkReceived | StreamEnded | Error


class ChatTransport(Protocol):
    def fetch(self, message: str) -> FetchResult: ...


ChangeListener = Callable[["ClientSession", Optional[Exchange]], None]


class ClientSession:
    """Per-window chat state machine. Not shared across threads."""

    def __init__(
        self,
        transport: ChatTransport,
        on_change: ChangeListener | None = None,
        greeting: str | None = None,
    ):
        self._transport = transport
        self._on_change = on_change
        self.state = SessionState.IDLE
        self.awaiting = False
        self.current: Exchange | None = None
        self.history: list[Exchange] = []
        self._intro: list[ChatMessage] = []
        if greeting:
            self._intro.append(ChatMessage(role=Role.ASSISTANT, content=greeting, final=True))

    @property
    def messages(self) -> list[ChatMessage]:
        """Transcript in display order, in-flight exchange last."""
        out = list(self._intro)
        exchanges = self.history + ([self.current] if self.current else [])
        for ex in exchanges:
            out.extend((ex.user, ex.assistant))
        return out

    def clear(self) -> None:
        """Drop the settled transcript. An in-flight exchange keeps running."""
        self._intro.clear()
        self.history.clear()
        self._notify(self.current)

    def submit(self, text: str) -> Exchange | None:
        """Send one message and block until its reply settles. Returns None when the submission is ignored."""
        exchange = self.dispatch(Submit(text))
        if exchange is not None:
            self._run(exchange)
        return exchange

    def dispatch(self, event: Event) -> Exchange | None:
        match event:
            case Submit(text=text):
                return self._begin(text)
            case ChunkReceived(text=text):
                self._on_chunk(text)
            case StreamEnded():
                self._on_end()
            case Error(kind=kind, message=message):
                self._on_error(kind, message)
        return None

    # ---- transitions ----

    def _begin(self, text: str) -> Exchange | None:
        if self.state is not SessionState.IDLE:
            logger.debug("Ignoring submission while %s", self.state.value)
            return None
        text = (text or "").strip()
        if not text:
            return None
        exchange = Exchange(
            user=ChatMessage(role=Role.USER, content=text, final=True),
            assistant=ChatMessage(role=Role.ASSISTANT),
        )
        self.current = exchange
        self.awaiting = True
        self._transition(SessionState.SENDING)
        return exchange

    def _on_chunk(self, text: str) -> None:
        if self.state not in (SessionState.SENDING, SessionState.STREAMING_RESPONSE):
            logger.debug("Dropping chunk received while %s", self.state.value)
            return
        if not text:
            return
        if self.state is SessionState.SENDING:
            self._transition(SessionState.STREAMING_RESPONSE)
        self.current.assistant.append(text)
        self._notify(self.current)

    def _on_end(self) -> None:
        if self.state not in (SessionState.SENDING, SessionState.STREAMING_RESPONSE):
            return
        self.current.assistant.final = True
        self._settle(SessionState.COMPLETED)

    def _on_error(self, kind: ErrorKind, message: str) -> None:
        if self.state not in (SessionState.SENDING, SessionState.STREAMING_RESPONSE):
            return
        logger.info("Exchange failed (%s): %s", kind.value, message)
        self.current.assistant.fail(f"Error: {message or 'Unexpected error'}")
        self._settle(SessionState.FAILED)

    def _settle(self, outcome: SessionState) -> None:
        exchange = self.current
        exchange.outcome = outcome
        self.awaiting = False
        self._transition(outcome)
        self.history.append(exchange)
        self.current = None
        self.state = SessionState.IDLE
        self._notify(exchange)

    def _transition(self, state: SessionState) -> None:
        logger.debug("Session %s -> %s", self.state.value, state.value)
        self.state = state
        self._notify(self.current)

    def _notify(self, exchange: Exchange | None) -> None:
        if self._on_change is not None:
            self._on_change(self, exchange)

    # ---- request / read loop ----

    @contextmanager
    def _in_flight(self, exchange: Exchange):
        """Whatever happens inside, the exchange settles and the awaiting indicator goes off."""
        try:
            yield
        except Exception as e:
            logger.exception("Unexpected error during exchange")
            if self.current is exchange:
                self.dispatch(Error(ErrorKind.TRANSPORT, str(e) or "Unexpected error"))
        finally:
            if self.current is exchange:
                self.dispatch(Error(ErrorKind.TRANSPORT, "Response ended unexpectedly"))
            self.awaiting = False

    def _run(self, exchange: Exchange) -> None:
        with self._in_flight(exchange):
            match self._transport.fetch(exchange.user.content):
                case FetchFailed(kind=kind, message=message):
                    self.dispatch(Error(kind, message))
                case FetchReply(text=text):
                    self.dispatch(ChunkReceived(text))
                    self.dispatch(StreamEnded())
                case FetchStream(chunks=chunks):
                    self._read(chunks)

    def _read(self, chunks: Iterable[bytes]) -> None:
        # Each step of the loop waits on the network; rendering happens in between.
        try:
            for text in iter_text(chunks):
                self.dispatch(ChunkReceived(text))
        except RelayError as e:
            self.dispatch(Error(e.kind, e.message))
            return
        self.dispatch(StreamEnded())
