# src/config/phases.py — v1
"""Declarative phase table.

Every phase-dependent rule (image requirement, required prior phases,
which prior results are injected into the prompt) lives here and is read
uniformly by the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PhaseSpec:
    """Static description of one pipeline phase."""

    number: int
    name: str
    description: str
    requires_image: bool
    depends_on: tuple[int, ...] = ()
    # Prior phases whose results are appended to the prompt, in order.
    context_phases: tuple[int, ...] = ()

    @property
    def key(self) -> str:
        """Return 'phaseN' identifier used in prompts and storage paths."""
        return f"phase{self.number}"


PHASES: tuple[PhaseSpec, ...] = (
    PhaseSpec(1, "Normalization", "Coordinate system setup", True),
    PhaseSpec(2, "Structure", "Wall and column extraction", True, (1,), (1,)),
    PhaseSpec(3, "Openings", "Door and window recognition", True, (1, 2), (1, 2)),
    PhaseSpec(4, "Spaces", "Space analysis", True, (1, 2, 3), (1, 2, 3)),
    PhaseSpec(5, "Dimensions", "Dimension calculation", True, (1, 2, 3, 4), (1, 2, 3, 4)),
    PhaseSpec(
        6, "Master JSON", "Final BIM JSON assembly", False,
        (1, 2, 3, 4, 5), (1, 2, 3, 4, 5),
    ),
)

_BY_NUMBER: dict[int, PhaseSpec] = {p.number: p for p in PHASES}

TOTAL_PHASES = len(PHASES)
MAX_PHASE = max(_BY_NUMBER)
FINAL_PHASE = PHASES[-1]
PHASE_NAMES: dict[int, str] = {p.number: p.name for p in PHASES}


def get_phase(phase_number: int) -> PhaseSpec | None:
    """Look up a phase by number."""
    return _BY_NUMBER.get(phase_number)


def is_valid_phase(phase_number: int) -> bool:
    return phase_number in _BY_NUMBER


def phase_requires_image(phase_number: int) -> bool:
    """Unknown phases are treated as image-bearing."""
    phase = get_phase(phase_number)
    return phase.requires_image if phase is not None else True


def missing_dependencies(phase_number: int, available: set[int]) -> list[int]:
    """Return required prior phases absent from ``available``, sorted."""
    phase = get_phase(phase_number)
    if phase is None:
        return []
    return [dep for dep in phase.depends_on if dep not in available]
