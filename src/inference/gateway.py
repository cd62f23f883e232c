# src/inference/gateway.py — v1
"""Inference gateway between the orchestrator and the LLM client.

Composes the phase prompt with injected prior results, calls the model
(vision call when a drawing is attached, text-only otherwise) under an
explicit timeout, and extracts the JSON payload from the raw reply.
Every failure is raised as InferenceError with the cause chained.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
import re
from typing import TYPE_CHECKING, Any

from plan2bim.llm.models import ImageInput, Message
from plan2bim.pipeline.errors import InferenceError

if TYPE_CHECKING:
    from plan2bim.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

CONTEXT_BEGIN = "===== BEGIN PRIOR PHASE RESULTS ====="
CONTEXT_END = "===== END PRIOR PHASE RESULTS ====="
CONTEXT_INSTRUCTION = (
    "Use the drawing and the prior phase results above, and answer with JSON only."
)
_IMAGE_INSTRUCTION = "Analyse the attached drawing and answer with JSON only."

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.DOTALL)
_FENCED_JSON_RE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)
_FENCED_ANY_RE = re.compile(r"```\s*([\s\S]*?)\s*```")


class JSONExtractionError(ValueError):
    """Raised when no valid JSON can be extracted from a model reply."""


def parse_data_url(data_url: str, source_id: str | None = None) -> ImageInput:
    """Decode a ``data:<mime>;base64,<payload>`` string into an ImageInput.

    Raises:
        ValueError: If the string is not a well-formed base64 data URL.
    """
    match = _DATA_URL_RE.match(data_url.strip())
    if not match:
        raise ValueError("Image must be a data URL of the form data:<mime>;base64,<payload>")
    try:
        data = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Malformed base64 image payload: {exc}") from exc
    if not data:
        raise ValueError("Image payload is empty")
    return ImageInput(data=data, media_type=match.group("mime"), source_id=source_id)


def extract_json(raw_text: str) -> Any:
    """Extract JSON from a model reply.

    Tries a ```json fenced block, then any fenced block, then the whole
    stripped text.

    Raises:
        JSONExtractionError: If none of the candidates parse.
    """
    candidates: list[str] = []
    for pattern in (_FENCED_JSON_RE, _FENCED_ANY_RE):
        match = pattern.search(raw_text)
        if match:
            candidates.append(match.group(1))
    candidates.append(raw_text.strip())

    last_error: json.JSONDecodeError | None = None
    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as exc:
            last_error = exc
    raise JSONExtractionError(f"No valid JSON in model output: {last_error}") from last_error


class InferenceGateway:
    """Send composed prompts to the inference service and parse replies."""

    def __init__(
        self,
        client: BaseLLMClient,
        timeout_s: float = 120.0,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        if timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
        self._client = client
        self._timeout_s = timeout_s
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def client(self) -> BaseLLMClient:
        return self._client

    @staticmethod
    def compose_prompt(prompt_text: str, prior_results: dict[int, Any] | None = None) -> str:
        """Append prior results to the instructions in a delimited section."""
        if not prior_results:
            return prompt_text
        context = {f"phase{n}": prior_results[n] for n in sorted(prior_results)}
        return "\n\n".join([
            prompt_text.rstrip(),
            CONTEXT_BEGIN,
            json.dumps(context, ensure_ascii=False, indent=2),
            CONTEXT_END,
            CONTEXT_INSTRUCTION,
        ])

    async def invoke(self, prompt_text: str, image: ImageInput | str | None = None) -> str:
        """Call the model and return its raw text.

        Raises:
            InferenceError: On service failure, timeout or a malformed image.
        """
        try:
            if isinstance(image, str):
                image = parse_data_url(image)
        except ValueError as exc:
            raise InferenceError(f"Invalid image encoding: {exc}", cause=exc) from exc

        try:
            if image is not None:
                call = self._client.complete_with_vision(
                    [Message(role="user", content=prompt_text),
                     Message(role="user", content=_IMAGE_INSTRUCTION)],
                    [image],
                    max_tokens=self._max_tokens,
                    temperature=self._temperature,
                    timeout_s=self._timeout_s,
                )
            else:
                call = self._client.complete(
                    [Message(role="user", content=prompt_text)],
                    max_tokens=self._max_tokens,
                    temperature=self._temperature,
                    timeout_s=self._timeout_s,
                )
            response = await asyncio.wait_for(call, timeout=self._timeout_s)
        except asyncio.TimeoutError as exc:
            raise InferenceError(
                f"Inference timed out after {self._timeout_s:g}s", cause=exc
            ) from exc
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            raise InferenceError(f"Inference service error: {exc}", cause=exc) from exc

        logger.info(
            "Inference completed in %dms (%d in / %d out tokens)",
            response.latency_ms, response.input_tokens, response.output_tokens,
            extra={"data": {"model": response.model, "vision": image is not None}},
        )
        return response.content

    async def generate(self, prompt_text: str, image: ImageInput | str | None = None) -> Any:
        """Invoke the model and return the extracted JSON payload."""
        raw = await self.invoke(prompt_text, image)
        try:
            return extract_json(raw)
        except JSONExtractionError as exc:
            logger.warning("Unparseable model output (%d chars)", len(raw))
            raise InferenceError(str(exc), cause=exc) from exc

    async def check_status(self) -> bool:
        """Send a trivial request; True if the service answers."""
        try:
            await asyncio.wait_for(
                self._client.complete(
                    [Message(role="user", content="ping")], max_tokens=8,
                    timeout_s=self._timeout_s,
                ),
                timeout=self._timeout_s,
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Inference status check failed: %s", exc)
            return False
        return True
