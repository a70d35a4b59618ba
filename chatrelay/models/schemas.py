"""API request and response models."""
from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, description="User message, forwarded upstream unchanged")


class ChatReply(BaseModel):
    """Whole-body reply shape understood by the client when the provider does not stream."""

    reply: str = Field(..., description="Assistant reply")


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Human readable error message")


class HealthResponse(BaseModel):
    status: str = "ok"
