# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings: inference
service, storage backend, prompt bootstrap location and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # === Inference service ===
    inference_provider: str = "google"
    inference_model: str = "gemini-3-pro-preview"
    inference_temperature: float = 0.95
    inference_max_tokens: int = 32768
    inference_timeout_s: float = 120.0

    # GOOGLE_AI_API_KEY takes precedence, GEMINI_API_KEY is accepted as well
    google_api_key: str = Field(
        default="",
        validation_alias=AliasChoices(
            "google_api_key", "google_ai_api_key", "gemini_api_key"
        ),
    )

    # === Storage (prompts + results) ===
    storage_backend: Literal["local", "s3"] = "local"
    storage_local_root: Path = Path("./data")
    storage_s3_bucket: str = ""
    storage_s3_prefix: str = "plan2bim/"
    storage_s3_region: str = ""
    storage_s3_endpoint_url: str = ""

    # === Prompts ===
    prompt_bootstrap_dir: Path = Path("./prompts")
    prompt_bootstrap_version: str = "1.0.0"

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: str = ""
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("inference_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """The inference wait must be bounded."""
        if v <= 0:
            raise ValueError("inference_timeout_s must be > 0")
        return v

    @field_validator("inference_temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if not 0.0 <= v <= 2.0:
            raise ValueError("inference_temperature must be within [0, 2]")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.storage_backend == "s3" and not self.storage_s3_bucket:
            errors.append("STORAGE_S3_BUCKET must be set when STORAGE_BACKEND=s3")

        if self.log_retention < 0:
            errors.append("LOG_RETENTION must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def inference_configured(self) -> bool:
        """Whether an API key is available for the inference service."""
        return bool(self.google_api_key)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
