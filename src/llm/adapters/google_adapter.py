# src/llm/adapters/google_adapter.py — v2
"""Google Gemini adapter implementing BaseLLMClient.

Uses the google-generativeai SDK. Drawings are sent as inline image parts
next to the composed instruction text.
"""

from __future__ import annotations

import time
from typing import Any

from plan2bim.llm.base_client import BaseLLMClient
from plan2bim.llm.models import ImageInput, LLMResponse, Message


class GoogleAdapter(BaseLLMClient):
    """Google Gemini adapter."""

    def __init__(
        self,
        model: str = "gemini-3-pro-preview",
        api_key: str = "",
        temperature: float = 0.95,
        max_tokens: int = 32768,
        **kwargs: Any,
    ):
        self._model = model
        self._api_key = api_key
        self._temperature = temperature
        self._max_tokens = max_tokens

    def _generative_model(self, system: str | None) -> Any:
        import google.generativeai as genai

        genai.configure(api_key=self._api_key)
        return genai.GenerativeModel(self._model, system_instruction=system)

    def _generation_config(
        self, max_tokens: int | None, temperature: float | None
    ) -> dict[str, Any]:
        return {
            "max_output_tokens": max_tokens or self._max_tokens,
            "temperature": self._temperature if temperature is None else temperature,
        }

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout_s: float | None = None,
    ) -> LLMResponse:
        model = self._generative_model(system)

        contents = []
        for m in messages:
            role = "model" if m.role == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": m.content}]})

        return await self._generate(
            model, contents, self._generation_config(max_tokens, temperature), timeout_s
        )

    async def complete_with_vision(
        self,
        messages: list[Message],
        images: list[ImageInput],
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout_s: float | None = None,
    ) -> LLMResponse:
        model = self._generative_model(system)

        # Image first, then the instruction text
        parts: list[dict[str, Any]] = []
        for img in images:
            parts.append({"inline_data": {"mime_type": img.media_type, "data": img.data}})
        for m in messages:
            parts.append({"text": m.content})

        return await self._generate(
            model, parts, self._generation_config(max_tokens, temperature), timeout_s
        )

    async def _generate(
        self,
        model: Any,
        contents: Any,
        gen_config: dict[str, Any],
        timeout_s: float | None,
    ) -> LLMResponse:
        request_options = {"timeout": timeout_s} if timeout_s else None

        t0 = time.monotonic()
        resp = await model.generate_content_async(
            contents, generation_config=gen_config, request_options=request_options,
        )
        latency = int((time.monotonic() - t0) * 1000)

        usage = getattr(resp, "usage_metadata", None)
        return LLMResponse(
            content=resp.text or "",
            input_tokens=getattr(usage, "prompt_token_count", 0) if usage else 0,
            output_tokens=getattr(usage, "candidates_token_count", 0) if usage else 0,
            model=self._model,
            provider="google",
            latency_ms=latency,
            raw_response=resp,
        )

    @property
    def supports_vision(self) -> bool:
        return True

    @property
    def provider_name(self) -> str:
        return "google"
