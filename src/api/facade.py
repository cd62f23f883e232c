# src/api/facade.py — v2
"""Public API facade: wiring and request entry points.

Usage:
    from plan2bim.api.facade import build_orchestrator, run_phase
    orchestrator = build_orchestrator()
    envelope = await run_phase({"phaseNumber": 1, "imageBase64": data_url}, orchestrator)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from plan2bim.api.models import PhaseRunPayload
from plan2bim.config.phases import PHASES
from plan2bim.config.settings import Settings, load_settings
from plan2bim.inference.gateway import InferenceGateway
from plan2bim.llm.client_factory import create_llm_client
from plan2bim.pipeline.models import ErrorEnvelope, PhaseRequest
from plan2bim.pipeline.orchestrator import PhaseOrchestrator
from plan2bim.prompts.repository import PromptRepository, default_template
from plan2bim.storage.result_store import ResultStore
from plan2bim.storage.store_factory import create_blob_store
from plan2bim.validation.validator import PhaseValidator

if TYPE_CHECKING:
    from plan2bim.llm.base_client import BaseLLMClient
    from plan2bim.storage.base_blob_store import BaseBlobStore

logger = logging.getLogger(__name__)


def build_orchestrator(
    settings: Settings | None = None,
    llm_client: BaseLLMClient | None = None,
    store: BaseBlobStore | None = None,
    use_default_templates: bool = False,
) -> PhaseOrchestrator:
    """Wire repository, gateway, validator and result store once.

    Args:
        settings: Global settings. Loaded from .env if None.
        llm_client: Inference client. Built from settings if None.
        store: Blob store shared by prompts and results. Built from settings if None.
        use_default_templates: Fall back to generic templates when a phase
            has no stored prompt.
    """
    if settings is None:
        settings = load_settings()
    if store is None:
        store = create_blob_store(settings)
    if llm_client is None:
        llm_client = create_llm_client(
            settings.inference_provider, settings.inference_model, settings
        )

    gateway = InferenceGateway(
        llm_client,
        timeout_s=settings.inference_timeout_s,
        temperature=settings.inference_temperature,
        max_tokens=settings.inference_max_tokens,
    )
    fallback = (
        {p.number: default_template(p.number) for p in PHASES}
        if use_default_templates else None
    )

    logger.info(
        "Orchestrator ready: storage=%s, model=%s",
        store.backend_name, settings.inference_model,
    )
    return PhaseOrchestrator(
        prompts=PromptRepository(store),
        gateway=gateway,
        validator=PhaseValidator(),
        results=ResultStore(store),
        fallback_templates=fallback,
    )


async def run_phase(
    payload: dict[str, Any] | PhaseRequest,
    orchestrator: PhaseOrchestrator,
) -> dict[str, Any]:
    """Run one phase from a request payload and return the envelope as a dict.

    The returned dict carries the envelope status under ``status``.
    """
    if isinstance(payload, PhaseRequest):
        request = payload
    else:
        try:
            request = PhaseRunPayload.model_validate(payload).to_request()
        except ValidationError as exc:
            envelope = ErrorEnvelope(
                error="Invalid request",
                code="VALIDATION_ERROR",
                errors=[
                    f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()
                ],
                status_code=400,
            )
            return {**envelope.to_dict(), "status": envelope.status_code}

    envelope = await orchestrator.run(request)
    return {**envelope.to_dict(), "status": envelope.status_code}


async def clear_session(session_id: str, results: ResultStore) -> int:
    """Remove every stored result of a session (retention trigger)."""
    if not session_id or not session_id.strip():
        raise ValueError("session_id is required")
    return await results.clear_session(session_id)
