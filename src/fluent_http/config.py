"""Request settings powered by Pydantic BaseSettings."""

from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fluent_http.constants import (
    DEFAULT_MAX_ATTEMPTS,
    MAX_BODY_DRAIN_BYTES,
    MAX_RETRY_AFTER_SECONDS,
    MAX_UNSTRUCTURED_RESPONSE_TEXT_BYTES,
)


class RequestSettings(BaseSettings):
    """Tunable behavior of the request pipeline.

    Values are read from ``FLUENT_HTTP_*`` environment variables or a
    ``.env`` file. The defaults reproduce the documented retry contract:
    ten evaluated responses, a 2 KiB drain budget and a 2 KiB error sample.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLUENT_HTTP_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        frozen=True,
        extra="ignore",
    )

    max_attempts: Annotated[int, Field(ge=1, le=100)] = DEFAULT_MAX_ATTEMPTS
    honor_retry_after: bool = Field(
        default=True,
        description="Wait for the Retry-After delay before re-sending",
    )
    max_retry_after_seconds: Annotated[float, Field(ge=0.0, le=3600.0)] = (
        MAX_RETRY_AFTER_SECONDS
    )
    drain_limit_bytes: Annotated[int, Field(ge=0, le=1024 * 1024)] = (
        MAX_BODY_DRAIN_BYTES
    )
    error_body_limit_bytes: Annotated[int, Field(ge=0, le=1024 * 1024)] = (
        MAX_UNSTRUCTURED_RESPONSE_TEXT_BYTES
    )
    strict_media_types: bool = Field(
        default=True,
        description="Raise on unsupported media types instead of skipping decode",
    )
    connect_timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = 30.0
    read_timeout_seconds: Annotated[float, Field(gt=0.0, le=3600.0)] = 30.0
    verify_tls: bool = True
    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        "fluent-http/1.0"
    )


def get_settings() -> RequestSettings:
    """Get a settings instance."""
    return RequestSettings()
