import json

import httpx
import pytest

from bedrock_relay.config import Settings, get_settings


RELAY_ENV_VARS = [
    "BACKEND_HOST",
    "BACKEND_PORT",
    "FRONTEND_ORIGIN",
    "AWS_BEARER_TOKEN_BEDROCK",
    "BEDROCK_REGION",
    "BEDROCK_MODEL_ID",
    "BEDROCK_INFERENCE_PROFILE_ID",
    "BEDROCK_INFERENCE_PROFILE_ARN",
    "UPSTREAM_TIMEOUT",
    "LOG_LEVEL",
    "LOG_PATH",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep the developer's shell and .env files out of the tests."""
    for name in RELAY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("RELAY_ENV_FILE", str(tmp_path / "missing.env"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_settings(**overrides) -> Settings:
    values = {"bearer_token": "test-token"}
    values.update(overrides)
    return Settings(**values)


class FakeBedrock:
    """Stand-in for the Bedrock runtime, backed by httpx.MockTransport."""

    def __init__(self, handler=None):
        self.requests: list[httpx.Request] = []
        self._handler = handler or self.echo

    @staticmethod
    def echo(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=json.loads(request.content))

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self._handle))


@pytest.fixture
def bedrock():
    return FakeBedrock()
