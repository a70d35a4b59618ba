"""
Chat client: POST /api/chat → decode chunks as they arrive → grow the reply in place.
ClientSession owns the exchange state; HttpChatTransport does the network side.
"""
from chatrelay.client.decoder import TransportDecoder, iter_text
from chatrelay.client.session import ChatMessage, ClientSession, Exchange, Role, SessionState
from chatrelay.client.transport import FetchFailed, FetchReply, FetchStream, HttpChatTransport

__all__ = [
    "ChatMessage",
    "ClientSession",
    "Exchange",
    "FetchFailed",
    "FetchReply",
    "FetchStream",
    "HttpChatTransport",
    "Role",
    "SessionState",
    "TransportDecoder",
    "iter_text",
]
