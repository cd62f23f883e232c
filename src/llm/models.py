# src/llm/models.py — v2
"""LLM-specific types: Message, ImageInput, LLMResponse."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel


class Message(BaseModel):
    """Single message in a conversation."""

    role: Literal["user", "assistant", "system"]
    content: str


class ImageInput(BaseModel):
    """Image payload for vision-enabled completions (the uploaded drawing)."""

    data: bytes
    media_type: str
    source_id: str | None = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class LLMResponse(BaseModel):
    """Normalized response from the inference provider."""

    content: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str
    provider: str
    latency_ms: int
    raw_response: Any = None
