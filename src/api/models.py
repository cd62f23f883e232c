# src/api/models.py — v2
"""API-level models: PhaseRunPayload (caller request shape)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from plan2bim.pipeline.models import PhaseRequest


class PhaseRunPayload(BaseModel):
    """Request body as sent by the front end (camelCase keys)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    phase_number: int = Field(alias="phaseNumber")
    image_base64: str | None = Field(default=None, alias="imageBase64")
    prompt_version: str | None = Field(default=None, alias="promptVersion")
    previous_results: dict[str, Any] | None = Field(default=None, alias="previousResults")
    session_id: str | None = Field(default=None, alias="sessionId")

    def to_request(self) -> PhaseRequest:
        return PhaseRequest(
            phase_number=self.phase_number,
            image=self.image_base64,
            prompt_version=self.prompt_version,
            prior_results=self.previous_results or {},
            session_id=self.session_id,
        )
