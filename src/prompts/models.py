# src/prompts/models.py — v1
"""Prompt domain model: PromptVersion."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

_VERSION_RE = re.compile(r"^[0-9A-Za-z][0-9A-Za-z.+-]*$")


class PromptVersion(BaseModel):
    """One stored revision of a phase prompt. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    key: str
    phase_number: int = Field(ge=1, le=6)
    version: str
    content: str
    is_active: bool = False
    created_at: datetime
    updated_at: datetime

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        if not _VERSION_RE.match(v):
            raise ValueError(f"Invalid prompt version: {v!r}")
        return v

    def version_tuple(self) -> tuple:
        """Sort key for semver-like versions; numeric parts compare numerically."""
        parts = re.split(r"[.+-]", self.version)
        return tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in parts)
