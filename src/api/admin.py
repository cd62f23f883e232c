# src/api/admin.py — v1
"""Admin prompt operations, gated by an external authorization check."""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from plan2bim.pipeline.errors import UnauthorizedError
from plan2bim.prompts.models import PromptVersion
from plan2bim.prompts.repository import PromptRepository

logger = logging.getLogger(__name__)


@runtime_checkable
class AuthGate(Protocol):
    """Decides whether a session may change prompts."""

    def is_authorized(self, session: Any) -> bool: ...


def _require(gate: AuthGate, session: Any, action: str) -> None:
    if not gate.is_authorized(session):
        logger.warning("Unauthorized prompt %s attempt", action)
        raise UnauthorizedError("Unauthorized")


async def create_prompt(
    repository: PromptRepository,
    gate: AuthGate,
    session: Any,
    phase_number: int,
    version: str,
    content: str,
    activate: bool = False,
) -> PromptVersion:
    _require(gate, session, "create")
    return await repository.save(phase_number, version, content, is_active=activate)


async def activate_prompt(
    repository: PromptRepository,
    gate: AuthGate,
    session: Any,
    phase_number: int,
    key: str,
) -> PromptVersion:
    _require(gate, session, "activate")
    return await repository.set_active(phase_number, key)


async def delete_prompt(
    repository: PromptRepository,
    gate: AuthGate,
    session: Any,
    key: str,
) -> bool:
    _require(gate, session, "delete")
    return await repository.delete(key)
