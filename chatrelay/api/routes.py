"""FastAPI routes for the chat relay."""
import logging

import httpx
from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError

from chatrelay.core.config import get_settings
from chatrelay.core.errors import InvalidRequest, RelayError, TransportError
from chatrelay.core.upstream import relay_chat
from chatrelay.models.schemas import ChatReply, ChatRequest, ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


def get_upstream_client(request: Request) -> httpx.AsyncClient:
    """Shared upstream client, opened and closed by the app lifespan."""
    return request.app.state.upstream_client


async def parse_chat_request(request: Request) -> ChatRequest:
    body = await request.body()
    try:
        return ChatRequest.model_validate_json(body or b"{}")
    except ValidationError as e:
        if any(err["type"] == "json_invalid" for err in e.errors()):
            raise InvalidRequest("Invalid JSON body")
        raise InvalidRequest("Missing message")


@router.post(
    "/chat",
    response_model=None,
    responses={
        200: {"model": ChatReply, "description": "Relayed provider reply, streamed as text or whole as JSON"},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def chat(request: Request, client: httpx.AsyncClient = Depends(get_upstream_client)) -> Response:
    """Relay one message to the AI provider. The reply is streamed back as it is produced when the provider streams."""
    req = await parse_chat_request(request)
    try:
        return await relay_chat(client, get_settings(), req.message)
    except RelayError:
        raise
    except Exception as e:
        logger.exception("Unexpected error relaying chat")
        raise TransportError(str(e) or "Unexpected error") from e


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    """Health check."""
    return HealthResponse()
