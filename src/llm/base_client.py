# src/llm/base_client.py — v2
"""Abstract LLM client interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from plan2bim.llm.models import ImageInput, LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for inference providers."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout_s: float | None = None,
    ) -> LLMResponse:
        """Text-only completion."""

    @abstractmethod
    async def complete_with_vision(
        self,
        messages: list[Message],
        images: list[ImageInput],
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout_s: float | None = None,
    ) -> LLMResponse:
        """Vision-enabled completion (images + text)."""

    @property
    @abstractmethod
    def supports_vision(self) -> bool:
        """Whether this provider/model supports image inputs."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (e.g. google)."""
