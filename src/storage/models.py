# src/storage/models.py — v2
"""Storage domain models: ResultMetadata, StoredResult."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ResultMetadata(BaseModel):
    """Sidecar written next to each persisted phase result."""

    phase_number: int
    prompt_version: str
    session_id: str | None = None
    created_at: datetime
    extra: dict[str, Any] = Field(default_factory=dict)


class StoredResult(BaseModel):
    """Reference to a persisted result, as returned by listings."""

    key: str
    locator: str
    phase_number: int
    version: str
