"""
Relay service configuration.

Settings come from environment variables, with an optional .env override file
filling in anything the environment does not set. The snapshot is built once
and never changes for the life of the process.
"""
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv.parser import parse_stream
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def find_env_file() -> Path:
    """Find the override file - RELAY_ENV_FILE, then local dir, then project root."""
    explicit = os.getenv("RELAY_ENV_FILE")
    if explicit:
        return Path(explicit).expanduser()

    local_env = Path(".env")
    root_env = Path("../.env")

    if local_env.exists():
        return local_env
    elif root_env.exists():
        return root_env
    return local_env  # default


def read_override_file(path: Optional[Path] = None) -> dict[str, str]:
    """
    Read key=value pairs from an override file.

    Blank lines, comments and lines without "=" are skipped. When a key
    appears more than once the first value is kept. A missing file yields
    an empty dict.
    """
    path = path if path is not None else find_env_file()
    if not path.is_file():
        return {}

    values: dict[str, str] = {}
    with open(path, encoding="utf-8") as f:
        for binding in parse_stream(f):
            if binding.error or binding.key is None or binding.value is None:
                continue
            key = binding.key.strip()
            if key and key not in values:
                values[key] = binding.value.strip()
    return values


class Settings(BaseSettings):
    """Service settings from environment variables."""

    # Server
    host: str = Field(default="0.0.0.0", validation_alias="BACKEND_HOST")
    port: int = Field(default=8088, validation_alias="BACKEND_PORT")
    allow_origin: str = Field(default="http://localhost:8087", validation_alias="FRONTEND_ORIGIN")

    # Bedrock - the token has no default, a missing one is reported per request
    bearer_token: str = Field(default="", validation_alias="AWS_BEARER_TOKEN_BEDROCK")
    region: str = Field(default="ap-southeast-2", validation_alias="BEDROCK_REGION")
    model_id: str = Field(
        default="anthropic.claude-sonnet-4-5-20250929-v1:0",
        validation_alias="BEDROCK_MODEL_ID",
    )
    inference_profile_id: str = Field(default="", validation_alias="BEDROCK_INFERENCE_PROFILE_ID")
    inference_profile_arn: str = Field(default="", validation_alias="BEDROCK_INFERENCE_PROFILE_ARN")
    upstream_timeout: float = Field(default=120.0, validation_alias="UPSTREAM_TIMEOUT")  # model calls can be slow

    # Logging
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")
    log_path: str = Field(default="", validation_alias="LOG_PATH")  # e.g. /app/logs/relay.log

    model_config = SettingsConfigDict(
        frozen=True,
        populate_by_name=True,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "host", "port", "allow_origin", "region", "model_id", "upstream_timeout", "log_level",
        mode="before",
    )
    @classmethod
    def blank_means_default(cls, value, info):
        if isinstance(value, str) and not value.strip():
            return cls.model_fields[info.field_name].default
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment first; the override file only fills the gaps.
        return (
            init_settings,
            env_settings,
            read_override_file,
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.bearer_token)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
