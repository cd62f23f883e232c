# src/validation/validator.py — v2
"""Phase output validator (pure, no I/O)."""

from __future__ import annotations

import math
from typing import Any, Iterator

from pydantic import BaseModel, ValidationError

from plan2bim.validation.schemas import PHASE_SCHEMAS

NON_FINITE_MESSAGE = "Input should be a finite number"


class ValidationOutcome(BaseModel):
    """Result of validating one phase payload. ``data`` is None unless valid."""

    valid: bool
    errors: list[str] = []
    data: Any = None


def format_error(error: dict[str, Any]) -> str:
    """Render one pydantic error as ``dotted.path: message``."""
    path = ".".join(str(part) for part in error["loc"])
    return f"{path}: {error['msg']}" if path else error["msg"]


def iter_non_finite(value: Any, loc: tuple[Any, ...] = ()) -> Iterator[tuple[Any, ...]]:
    """Yield the location of every NaN or infinite float, unknown keys included."""
    if isinstance(value, float):
        if not math.isfinite(value):
            yield loc
    elif isinstance(value, dict):
        for key, item in value.items():
            yield from iter_non_finite(item, (*loc, key))
    elif isinstance(value, list):
        for index, item in enumerate(value):
            yield from iter_non_finite(item, (*loc, index))


class PhaseValidator:
    """Validate phase payloads against their required shapes."""

    def validate(self, phase_number: int, candidate: Any) -> ValidationOutcome:
        schema = PHASE_SCHEMAS.get(phase_number)
        if schema is None:
            return ValidationOutcome(
                valid=False, errors=[f"Invalid phase number: {phase_number}"]
            )

        errors: list[str] = []
        model = None
        try:
            model = schema.model_validate(candidate)
        except ValidationError as exc:
            errors = [format_error(e) for e in exc.errors()]

        # Declared fields are covered by the schema; this also catches extras.
        for loc in iter_non_finite(candidate):
            message = format_error({"loc": loc, "msg": NON_FINITE_MESSAGE})
            if message not in errors:
                errors.append(message)

        if errors or model is None:
            return ValidationOutcome(valid=False, errors=errors)

        data = model.model_dump(mode="json", by_alias=True, exclude_unset=True)
        return ValidationOutcome(valid=True, data=data)
