# src/pipeline/orchestrator.py — v3
"""Phase orchestrator: one phase per call, no state kept between calls.

Per invocation:
  PENDING          input checks (phase number, image, prior results)
  PROMPT_RESOLVED  prompt resolved from the repository (or explicit fallback)
  INVOKED          prompt composed with prior context, model called, JSON extracted
  VALIDATED        payload matches the phase shape
  PERSISTED        result saved (append-only)
  DONE             PhaseResult returned
FAILED is reachable from every state. Nothing is persisted before VALIDATED.

Input checks deliberately run before prompt resolution: a request that is
both malformed and lacks a prompt fails with VALIDATION_ERROR, and the
prompt repository is never read for it.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from plan2bim.config.phases import FINAL_PHASE, PhaseSpec, get_phase, missing_dependencies
from plan2bim.logging.context import clear_context, set_invocation_context, set_state_context
from plan2bim.pipeline.errors import (
    InputInvalidError,
    PhaseValidationError,
    PipelineError,
    PromptNotFoundError,
)
from plan2bim.pipeline.models import (
    ErrorEnvelope,
    PhaseRequest,
    PhaseResult,
    PhaseState,
    SuccessEnvelope,
)

if TYPE_CHECKING:
    from plan2bim.inference.gateway import InferenceGateway
    from plan2bim.prompts.repository import PromptRepository
    from plan2bim.storage.result_store import ResultStore
    from plan2bim.validation.validator import PhaseValidator

logger = logging.getLogger(__name__)

FALLBACK_VERSION = "default"


class PhaseOrchestrator:
    """Run a single pipeline phase end to end.

    Args:
        prompts: Prompt repository used for resolution.
        gateway: Inference gateway.
        validator: Phase output validator.
        results: Result store for validated outputs.
        fallback_templates: Optional phase -> template text used only when
            the repository resolves nothing. Absent by default, so a missing
            prompt fails with PromptNotFoundError.
    """

    def __init__(
        self,
        prompts: PromptRepository,
        gateway: InferenceGateway,
        validator: PhaseValidator,
        results: ResultStore,
        fallback_templates: dict[int, str] | None = None,
    ) -> None:
        self._prompts = prompts
        self._gateway = gateway
        self._validator = validator
        self._results = results
        self._fallback_templates = dict(fallback_templates or {})

    async def run(self, request: PhaseRequest) -> SuccessEnvelope | ErrorEnvelope:
        """Execute a phase and map the outcome to a response envelope."""
        try:
            result = await self.execute(request)
        except PipelineError as exc:
            logger.warning("Phase %d failed [%s]: %s", request.phase_number, exc.code, exc.message)
            return ErrorEnvelope(
                error=exc.message,
                code=exc.code,
                errors=exc.errors or None,
                status_code=exc.status_code,
            )
        except Exception:
            logger.exception("Unexpected error in phase %d", request.phase_number)
            return ErrorEnvelope(
                error="Internal server error", code="INTERNAL_ERROR", status_code=500
            )
        finally:
            clear_context()

        return SuccessEnvelope.from_result(
            result, is_final=result.phase_number == FINAL_PHASE.number
        )

    async def execute(self, request: PhaseRequest) -> PhaseResult:
        """Execute a phase, raising a PipelineError subclass on failure."""
        run_id = uuid.uuid4().hex[:12]
        set_invocation_context(run_id, request.phase_number, request.session_id)
        state = PhaseState.PENDING
        self._enter(state)

        try:
            phase = self._check_input(request)

            version, prompt_text = await self._resolve_prompt(phase, request.prompt_version)
            state = PhaseState.PROMPT_RESOLVED
            self._enter(state, version=version)

            context = {n: request.prior_results[n] for n in phase.context_phases}
            composed = self._gateway.compose_prompt(prompt_text, context)
            image = request.image if phase.requires_image else None
            payload = await self._gateway.generate(composed, image)
            state = PhaseState.INVOKED
            self._enter(state)

            outcome = self._validator.validate(phase.number, payload)
            if not outcome.valid:
                raise PhaseValidationError(phase.number, outcome.errors)
            state = PhaseState.VALIDATED
            self._enter(state)

            locator = await self._results.save(
                phase.number,
                version,
                outcome.data,
                metadata={"run_id": run_id, "phase_name": phase.name},
                session_id=request.session_id,
            )
            state = PhaseState.PERSISTED
            self._enter(state, locator=locator)

            result = PhaseResult(
                phase_number=phase.number,
                version=version,
                data=outcome.data,
                result_locator=locator,
                timestamp=datetime.now(timezone.utc),
            )
        except asyncio.CancelledError:
            self._fail(state, "cancelled")
            raise
        except Exception as exc:
            self._fail(state, type(exc).__name__)
            raise

        self._enter(PhaseState.DONE)
        return result

    # --- Steps ---

    @staticmethod
    def _check_input(request: PhaseRequest) -> PhaseSpec:
        phase = get_phase(request.phase_number)
        if phase is None:
            raise InputInvalidError(f"Invalid phase number: {request.phase_number}")
        if phase.requires_image and not request.has_image:
            raise InputInvalidError(f"Phase {phase.number} requires an image")

        missing = missing_dependencies(phase.number, set(request.prior_results))
        if missing:
            names = ", ".join(f"phase{n}" for n in missing)
            raise InputInvalidError(
                f"Phase {phase.number} requires prior results: {names}",
                [f"priorResults.phase{n}: required" for n in missing],
            )
        return phase

    async def _resolve_prompt(self, phase: PhaseSpec, version: str | None) -> tuple[str, str]:
        prompt = await self._prompts.resolve(phase.number, version)
        if prompt is not None:
            return prompt.version, prompt.content

        # Fallback only applies to unpinned requests
        fallback = self._fallback_templates.get(phase.number)
        if fallback is not None and version is None:
            logger.warning("Phase %d: no stored prompt, using fallback template", phase.number)
            return FALLBACK_VERSION, fallback
        raise PromptNotFoundError(phase.number, version)

    # --- State tracking ---

    @staticmethod
    def _enter(state: PhaseState, **data: object) -> None:
        set_state_context(state.value)
        logger.info("State -> %s", state.value, extra={"data": data} if data else None)

    @staticmethod
    def _fail(state: PhaseState, reason: str) -> None:
        set_state_context(PhaseState.FAILED.value)
        logger.info(
            "State -> %s", PhaseState.FAILED.value,
            extra={"data": {"from": state.value, "reason": reason}},
        )
