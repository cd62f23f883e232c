# src/pipeline/models.py — v1
"""Pipeline domain models: PhaseState, PhaseRequest, PhaseResult, envelopes."""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from plan2bim.llm.models import ImageInput

_PHASE_KEY_RE = re.compile(r"^(?:phase)?(\d+)$", re.IGNORECASE)


class PhaseState(str, Enum):
    """States of one phase invocation."""

    PENDING = "pending"
    PROMPT_RESOLVED = "prompt_resolved"
    INVOKED = "invoked"
    VALIDATED = "validated"
    PERSISTED = "persisted"
    DONE = "done"
    FAILED = "failed"


class PhaseRequest(BaseModel):
    """Everything one phase invocation needs; supplied by the caller each time."""

    phase_number: int
    image: ImageInput | str | None = None
    prompt_version: str | None = None
    prior_results: dict[int, Any] = Field(default_factory=dict)
    session_id: str | None = None

    @field_validator("prompt_version")
    @classmethod
    def normalize_version(cls, v: str | None) -> str | None:
        if v is None or not v.strip() or v.strip() == "latest":
            return None
        return v.strip()

    @field_validator("image")
    @classmethod
    def normalize_image(cls, v: ImageInput | str | None) -> ImageInput | str | None:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("prior_results", mode="before")
    @classmethod
    def normalize_prior_keys(cls, v: Any) -> Any:
        """Accept keys as 3, "3" or "phase3"; drop null entries."""
        if v is None:
            return {}
        if not isinstance(v, dict):
            return v
        normalized: dict[int, Any] = {}
        for key, value in v.items():
            if value is None:
                continue
            if isinstance(key, int) and not isinstance(key, bool):
                normalized[key] = value
                continue
            match = _PHASE_KEY_RE.match(str(key).strip())
            if not match:
                raise ValueError(f"Unrecognized prior result key: {key!r}")
            normalized[int(match.group(1))] = value
        return normalized

    @property
    def has_image(self) -> bool:
        return self.image is not None


class PhaseResult(BaseModel):
    """Validated, persisted output of one phase. Never mutated."""

    model_config = ConfigDict(frozen=True)

    phase_number: int
    version: str
    data: Any
    result_locator: str
    timestamp: datetime


class _Envelope(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PhaseMetadata(_Envelope):
    prompt_version: str
    timestamp: datetime
    is_final: bool | None = None


class SuccessEnvelope(_Envelope):
    """Returned by PhaseOrchestrator.run on success."""

    status_code: ClassVar[int] = 200

    success: bool = True
    phase: int
    result: Any
    result_locator: str
    metadata: PhaseMetadata

    @classmethod
    def from_result(cls, result: PhaseResult, is_final: bool) -> SuccessEnvelope:
        return cls(
            phase=result.phase_number,
            result=result.data,
            result_locator=result.result_locator,
            metadata=PhaseMetadata(
                prompt_version=result.version,
                timestamp=result.timestamp,
                is_final=is_final or None,
            ),
        )


class ErrorEnvelope(_Envelope):
    """Returned by PhaseOrchestrator.run on any failure."""

    error: str
    code: str
    errors: list[str] | None = None
    status_code: int = Field(default=500, exclude=True)

    @property
    def success(self) -> bool:
        return False
