"""
Pydantic models for the relay API and the Bedrock request body.
"""
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# Fixed generation parameters; not configurable per request
ANTHROPIC_VERSION = "bedrock-2023-05-31"
MAX_TOKENS = 4000


class ConversationTurn(BaseModel):
    """A single message in the conversation history."""
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Request body for POST /api/chat, after lenient parsing."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message: str
    # Entries are forwarded to Bedrock exactly as the client sent them
    conversation_history: tuple[Any, ...] = Field(default=(), alias="conversationHistory")


class InferencePayload(BaseModel):
    """Body of a Bedrock InvokeModel call for Anthropic models."""
    model_config = ConfigDict(frozen=True)

    anthropic_version: str = ANTHROPIC_VERSION
    max_tokens: int = MAX_TOKENS
    messages: list[Any]


class ChatResponse(BaseModel):
    """Success envelope for POST /api/chat."""
    response: Any


class ErrorResponse(BaseModel):
    """Error envelope for every failed request."""
    error: str


class HealthResponse(BaseModel):
    """Response body for GET /health."""
    ok: bool = True
