"""Configuration loading and validation.

This module is responsible for:

- Loading `.env` into the process environment (without overriding existing vars).
- Converting `CLOUD_LOGGING_*` environment variables into typed Pydantic models.
- Validating values and providing actionable error messages.
"""

import os
from typing import Literal, TypeVar

import dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

_T = TypeVar("_T", int, float)

# Provider-side maximum for a single ListLogEntries page.
PROVIDER_MAX_PAGE_SIZE = 1000

SeverityLevel = Literal["info", "debug"]
LabelKeyStyle = Literal["quoted", "raw"]
MessageErrorPolicy = Literal["keep", "stop"]


def _get_env_str(name: str, default: str) -> str:
    """Read an optional string env var, stripped, with a default."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip()


def _get_env_bool(name: str, default: bool) -> bool:
    """Read a boolean env var with a default."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    normalized = raw.strip().lower()
    if normalized in {"true", "1", "yes", "y", "on"}:
        return True
    if normalized in {"false", "0", "no", "n", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean (true/false). Got: {raw!r}")


def _get_env_number(name: str, default: _T, cast: type[_T]) -> _T:
    """Read an int/float env var with a default."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a {cast.__name__}. Got: {raw!r}") from exc


class NormalizationConfig(BaseModel):
    """Knobs for turning provider log entries into display units.

    Historical variants of the datasource disagreed on a few output details;
    each of them is selectable here instead of being hard-coded.
    """

    model_config = ConfigDict(frozen=True)

    default_severity_level: SeverityLevel = Field(
        default="info", description="Display level for the provider DEFAULT severity"
    )
    label_key_style: LabelKeyStyle = Field(
        default="quoted", description='Provider labels as `labels."k"` (quoted) or `k` (raw)'
    )
    message_error_policy: MessageErrorPolicy = Field(
        default="keep", description="On a message failure: keep the unit with an empty message, or stop"
    )
    max_page_size: int = Field(default=PROVIDER_MAX_PAGE_SIZE, description="Upper bound for a page request")

    @field_validator("max_page_size")
    def validate_max_page_size(cls, v: int) -> int:
        """Page size must be positive and within the provider maximum."""
        if v <= 0 or v > PROVIDER_MAX_PAGE_SIZE:
            raise ValueError(f"max_page_size must be between 1 and {PROVIDER_MAX_PAGE_SIZE}. Got: {v}")
        return v


class DatasourceConfig(BaseModel):
    """Settings for the host-facing datasource handlers."""

    default_project: str = Field(default="", description="Project used for health checks")
    health_check_timeout_s: float = Field(default=60.0, description="Bound on the health check query (seconds)")
    diagnostics_path: str = Field(default="", description="DuckDB file for query diagnostics; empty keeps them in memory")
    record_diagnostics: bool = Field(default=True, description="Record query diagnostics at all")

    @field_validator("health_check_timeout_s")
    def validate_timeout(cls, v: float) -> float:
        """Timeouts must be positive."""
        if v <= 0:
            raise ValueError(f"CLOUD_LOGGING_HEALTH_CHECK_TIMEOUT must be > 0. Got: {v}")
        return v


class Config(BaseModel):
    """Top-level application configuration."""

    normalization: NormalizationConfig = Field(default_factory=NormalizationConfig)
    datasource: DatasourceConfig = Field(default_factory=DatasourceConfig)


def load_config() -> Config:
    """Load application configuration from environment variables.

    Notes:
    - Calls `dotenv.load_dotenv()` so local `.env` values are visible to the process.
    - Every variable is optional; invalid values raise `ValueError` naming the
      offending variable.
    """
    dotenv.load_dotenv()

    normalization = NormalizationConfig(
        default_severity_level=_get_env_str("CLOUD_LOGGING_DEFAULT_SEVERITY_LEVEL", "info").lower(),
        label_key_style=_get_env_str("CLOUD_LOGGING_LABEL_KEY_STYLE", "quoted").lower(),
        message_error_policy=_get_env_str("CLOUD_LOGGING_MESSAGE_ERROR_POLICY", "keep").lower(),
        max_page_size=_get_env_number("CLOUD_LOGGING_MAX_PAGE_SIZE", PROVIDER_MAX_PAGE_SIZE, int),
    )
    datasource = DatasourceConfig(
        default_project=_get_env_str("CLOUD_LOGGING_DEFAULT_PROJECT", ""),
        health_check_timeout_s=_get_env_number("CLOUD_LOGGING_HEALTH_CHECK_TIMEOUT", 60.0, float),
        diagnostics_path=_get_env_str("CLOUD_LOGGING_DIAGNOSTICS_PATH", ""),
        record_diagnostics=_get_env_bool("CLOUD_LOGGING_RECORD_DIAGNOSTICS", True),
    )
    return Config(normalization=normalization, datasource=datasource)
