"""
Relay client - talks to the relay the same way the browser UI does.

The client owns the conversation history. Each send posts the history as
it was before the new message, then records both the user message and the
reply. Relay errors are never shown to the user; they become a fixed
apology message.
"""
import asyncio
import logging
import os
from typing import Any, Optional

import httpx

from .models import ConversationTurn

logger = logging.getLogger(__name__)


FALLBACK_REPLY = "Sorry, I could not process your request."
ERROR_REPLY = "Sorry, there was an error processing your message. Please try again."


def extract_reply_text(response: Any) -> str:
    """
    Pull display text out of a relayed Bedrock response.

    Looks for an Anthropic content block first, then a plain "message"
    field, then gives up with a canned reply.
    """
    if isinstance(response, dict):
        content = response.get("content")
        if isinstance(content, list) and content:
            first = content[0]
            if isinstance(first, dict) and first.get("text"):
                return first["text"]
        if response.get("message"):
            return str(response["message"])
    return FALLBACK_REPLY


class RelayChatClient:
    """HTTP client for the relay's /api/chat endpoint."""

    def __init__(
        self,
        base_url: str = "http://localhost:8088",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 120.0,
    ):
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._history: list[ConversationTurn] = []

    @property
    def history(self) -> tuple[ConversationTurn, ...]:
        return tuple(self._history)

    def clear(self) -> None:
        """Forget the conversation."""
        self._history = []

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def send(self, text: str) -> str:
        """
        Send a message and return the text to display for the reply.

        Blank input is ignored and returns an empty string without a
        request. Any failure yields ERROR_REPLY.
        """
        text = text.strip()
        if not text:
            return ""

        prior = [turn.model_dump() for turn in self._history]
        self._history.append(ConversationTurn(role="user", content=text))

        try:
            response = await self._client.post(
                f"{self._base_url}/api/chat",
                json={"message": text, "conversationHistory": prior},
            )
            response.raise_for_status()
            reply = extract_reply_text(response.json().get("response"))
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.error("Error sending message to relay: %s", e)
            reply = ERROR_REPLY

        self._history.append(ConversationTurn(role="assistant", content=reply))
        return reply


async def _repl(base_url: str) -> None:
    chat = RelayChatClient(base_url)
    print(f"Chatting via {base_url}. Type /clear to reset, /quit to exit.")
    try:
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            command = line.strip()
            if command == "/quit":
                break
            if command == "/clear":
                chat.clear()
                print("(conversation cleared)")
                continue
            reply = await chat.send(line)
            if reply:
                print(reply)
    finally:
        await chat.aclose()


def main():
    """Interactive terminal chat against a running relay."""
    base_url = os.getenv("RELAY_URL", "http://localhost:8088")
    try:
        asyncio.run(_repl(base_url))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
