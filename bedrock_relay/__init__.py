"""
Bedrock Relay - forwards browser chat turns to Amazon Bedrock.

The relay is stateless: each request carries its own conversation history,
is translated into a single InvokeModel call, and Bedrock's JSON response
is passed back unchanged.
"""

from .config import Settings, get_settings
from .exceptions import (
    RelayError,
    ConfigurationError,
    ClientInputError,
    NotFoundError,
    UpstreamHttpError,
    TransportError,
)
from .models import ConversationTurn, ChatRequest, InferencePayload
from .translator import translate, build_headers, endpoint_url
from .invoker import UpstreamInvoker
from .main import create_app

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors
    "RelayError",
    "ConfigurationError",
    "ClientInputError",
    "NotFoundError",
    "UpstreamHttpError",
    "TransportError",
    # Models
    "ConversationTurn",
    "ChatRequest",
    "InferencePayload",
    # Relay pipeline
    "translate",
    "build_headers",
    "endpoint_url",
    "UpstreamInvoker",
    # App factory
    "create_app",
]
