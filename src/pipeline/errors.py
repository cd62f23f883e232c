# src/pipeline/errors.py — v1
"""Error taxonomy surfaced by the phase orchestrator.

Each error carries the public ``code`` and a ``status_code`` category so
callers can distinguish client-correctable input, missing configuration,
upstream service failure and unusable AI output.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for all classified pipeline errors."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = list(errors) if errors else []


class InputInvalidError(PipelineError):
    """Missing image, missing prior phase, malformed request."""

    code = "VALIDATION_ERROR"
    status_code = 400


class PromptNotFoundError(PipelineError):
    """No prompt could be resolved for a phase (configuration gap)."""

    code = "PROMPT_NOT_FOUND"
    status_code = 404

    def __init__(self, phase_number: int, version: str | None = None) -> None:
        self.phase_number = phase_number
        self.version = version
        if version:
            message = f"Phase {phase_number} prompt version {version!r} not found"
        else:
            message = f"Phase {phase_number} prompt not found"
        super().__init__(message)


class InferenceError(PipelineError):
    """Inference service failure, timeout, bad image encoding or unparseable output.

    The underlying exception is chained as ``__cause__`` and kept on ``cause``.
    """

    code = "INFERENCE_ERROR"
    status_code = 502

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class PhaseValidationError(PipelineError):
    """The AI output does not match the phase's required shape."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, phase_number: int, errors: list[str]) -> None:
        self.phase_number = phase_number
        super().__init__(
            f"Phase {phase_number} output failed validation ({len(errors)} errors)",
            errors,
        )


class UnauthorizedError(PipelineError):
    """Admin operation attempted without an authorized session."""

    code = "UNAUTHORIZED"
    status_code = 403
