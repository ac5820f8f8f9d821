"""
Upstream invoker - sends one InvokeModel request to Bedrock.

A call either returns the decoded JSON body exactly as Bedrock sent it or
raises a RelayError subclass describing what went wrong. There are no
retries; one invoke is one HTTP request.
"""
import logging
import time
from typing import Any, Optional

import httpx

from .config import Settings
from .exceptions import ConfigurationError, RelayError, TransportError, UpstreamHttpError
from .models import InferencePayload

logger = logging.getLogger(__name__)


class UpstreamInvoker:
    """HTTP client for the Bedrock runtime."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=settings.upstream_timeout)

    async def aclose(self) -> None:
        """Close the HTTP client if this invoker created it."""
        if self._owns_client:
            await self._client.aclose()

    async def invoke(
        self,
        payload: InferencePayload,
        headers: dict[str, str],
        endpoint_url: str,
    ) -> Any:
        """
        Send the payload to Bedrock.

        Args:
            payload: Body built by the translator
            headers: Auth and routing headers
            endpoint_url: Full InvokeModel URL

        Returns:
            The parsed JSON response body, untouched

        Raises:
            ConfigurationError: No bearer token is configured
            TransportError: Bedrock could not be reached
            UpstreamHttpError: Bedrock returned a non-2xx status
        """
        if not self._settings.bearer_token:
            raise ConfigurationError("Missing AWS_BEARER_TOKEN_BEDROCK")

        start_time = time.time()

        logger.debug(
            "Bedrock request: url=%s, messages=%d",
            endpoint_url, len(payload.messages)
        )

        request = self._client.build_request(
            "POST",
            endpoint_url,
            headers=headers,
            json=payload.model_dump(),
        )

        try:
            # Streamed so the status is known even if the body cannot be read
            response = await self._client.send(request, stream=True)
        except httpx.RequestError as e:
            raise self._transport_error(e, start_time) from e

        try:
            if not response.is_success:
                body = await _read_text(response)
                latency_ms = int((time.time() - start_time) * 1000)
                logger.warning(
                    "Bedrock error after %dms: HTTP %d: %s",
                    latency_ms, response.status_code, body[:200]
                )
                raise UpstreamHttpError(response.status_code, body)

            try:
                await response.aread()
            except httpx.RequestError as e:
                raise self._transport_error(e, start_time) from e
        finally:
            await response.aclose()

        latency_ms = int((time.time() - start_time) * 1000)

        try:
            data = response.json()
        except ValueError as e:
            logger.error("Bedrock returned a non-JSON body after %dms", latency_ms)
            raise RelayError(f"Bedrock returned invalid JSON: {e}", None) from e

        logger.debug("Bedrock response: latency=%dms, status=%d", latency_ms, response.status_code)
        return data

    @staticmethod
    def _transport_error(error: httpx.RequestError, start_time: float) -> TransportError:
        latency_ms = int((time.time() - start_time) * 1000)
        error_msg = str(error) or type(error).__name__
        logger.error("Bedrock unreachable after %dms: %s", latency_ms, error_msg)
        return TransportError(f"Bedrock request failed: {error_msg}")


async def _read_text(response: httpx.Response) -> str:
    """Best-effort body read; a broken body must not hide the status code."""
    try:
        await response.aread()
        return response.text
    except (httpx.HTTPError, httpx.StreamError) as e:
        logger.debug("Could not read Bedrock error body: %s", e)
        return ""
