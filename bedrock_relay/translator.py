"""
Request translation - turns a chat turn into a Bedrock InvokeModel request.

Nothing here does I/O; the invoker sends what these functions build.
"""
from typing import Any, Sequence
from urllib.parse import quote

from .config import Settings
from .models import ConversationTurn, InferencePayload


INVOKE_TARGET = "BedrockRuntime.InvokeModel"
PROFILE_ID_HEADER = "x-amzn-bedrock-inference-profile-id"
PROFILE_ARN_HEADER = "x-amzn-bedrock-inference-profile-arn"


def translate(message: str, history: Sequence[Any]) -> InferencePayload:
    """
    Build the Bedrock payload for a new user message.

    The message is always appended as the last turn with role "user", even
    when the history already ends with a user turn. The history itself is
    copied, never modified.

    Args:
        message: Text the user just sent
        history: Prior turns, oldest first

    Returns:
        InferencePayload with the fixed version tag and token cap
    """
    turn = ConversationTurn(role="user", content=message)
    return InferencePayload(messages=[*history, turn.model_dump()])


def build_headers(settings: Settings) -> dict[str, str]:
    """Auth and routing headers for an InvokeModel call."""
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {settings.bearer_token}",
        "X-Amz-Target": INVOKE_TARGET,
    }
    if settings.inference_profile_id:
        headers[PROFILE_ID_HEADER] = settings.inference_profile_id
    if settings.inference_profile_arn:
        headers[PROFILE_ARN_HEADER] = settings.inference_profile_arn
    return headers


def endpoint_url(settings: Settings) -> str:
    """InvokeModel URL for the configured region and model."""
    host = f"https://bedrock-runtime.{settings.region}.amazonaws.com"
    return f"{host}/model/{quote(settings.model_id, safe='')}/invoke"
