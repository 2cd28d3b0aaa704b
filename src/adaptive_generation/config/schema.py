"""Configuration schema and validation using Pydantic.

Validates and coerces values gathered from the environment, TOML files and
programmatic overrides into typed settings with defaults.
"""

from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from adaptive_generation.constants import (
    DEFAULT_LOGOGRAPHIC_MULTIPLIER,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_RESPONSE_CHARS,
    DEFAULT_SLOW_RESPONSE_MS,
    MAX_ATTEMPTS_CEILING,
)

OutputModeSetting = Literal["auto", "structured", "free_text"]

FIELD_ORDER = (
    "api_key",
    "model",
    "use_real_api",
    "max_attempts",
    "logographic_multiplier",
    "output_mode",
    "slow_response_ms",
    "fallback_on_exhaustion",
    "max_response_chars",
)


def normalize_output_mode(v: Any) -> Any:
    """Accept enum members and mixed-case or hyphenated strings."""
    value = getattr(v, "value", v)
    if isinstance(value, str):
        return value.strip().lower().replace("-", "_")
    return value


class PipelineSettings(BaseSettings):
    """Pydantic settings schema for the adaptive generation pipeline.

    Environment variables use the ADAPTIVE_GEN_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="ADAPTIVE_GEN_",
        env_file=None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str | None = Field(
        default=None,
        description="Google Gemini API key",
    )

    model: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model identifier",
        min_length=1,
    )

    use_real_api: bool = Field(
        default=False,
        description="Call the real API instead of the deterministic mock",
    )

    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS,
        description="Content-shape retry ceiling for one generation",
        ge=1,
        le=MAX_ATTEMPTS_CEILING,
    )

    logographic_multiplier: float = Field(
        default=DEFAULT_LOGOGRAPHIC_MULTIPLIER,
        description="Budget multiplier for logographic target languages",
        ge=1.0,
    )

    output_mode: OutputModeSetting = Field(
        default="free_text",
        description="Requested output mode; 'auto' lets the assessment decide",
    )

    slow_response_ms: int = Field(
        default=DEFAULT_SLOW_RESPONSE_MS,
        description="Elapsed time above which a response counts as slow",
        ge=1,
    )

    fallback_on_exhaustion: bool = Field(
        default=True,
        description="Return the fallback payload instead of raising when retries run out",
    )

    max_response_chars: int = Field(
        default=DEFAULT_MAX_RESPONSE_CHARS,
        description="Raw response text is clipped to this many characters before parsing",
        ge=1_000,
    )

    @field_validator("output_mode", mode="before")
    @classmethod
    def parse_output_mode(cls, v: Any) -> Any:
        return normalize_output_mode(v)

    @model_validator(mode="after")
    def validate_api_key_requirement(self) -> "PipelineSettings":
        """Ensure api_key is provided when use_real_api is True."""
        if self.use_real_api and not self.api_key:
            raise ValueError(
                "api_key is required when use_real_api=True. "
                "Set ADAPTIVE_GEN_API_KEY, provide it in a config file, "
                "or pass it programmatically."
            )
        return self

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in FIELD_ORDER}
