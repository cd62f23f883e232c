# tests/unit/pipeline/test_unit_models.py — v1
"""Tests for pipeline/models.py and pipeline/errors.py."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from plan2bim.pipeline.errors import (
    InferenceError,
    InputInvalidError,
    PhaseValidationError,
    PipelineError,
    PromptNotFoundError,
    UnauthorizedError,
)
from plan2bim.pipeline.models import (
    ErrorEnvelope,
    PhaseRequest,
    PhaseResult,
    PhaseState,
    SuccessEnvelope,
)

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestPhaseRequest:
    def test_prior_key_forms(self):
        req = PhaseRequest(
            phase_number=4,
            prior_results={"phase1": {"a": 1}, "2": {"b": 2}, 3: {"c": 3}},
        )
        assert req.prior_results == {1: {"a": 1}, 2: {"b": 2}, 3: {"c": 3}}

    def test_null_prior_entries_dropped(self):
        req = PhaseRequest(phase_number=2, prior_results={"phase1": None})
        assert req.prior_results == {}

    def test_bad_prior_key(self):
        with pytest.raises(ValidationError):
            PhaseRequest(phase_number=2, prior_results={"walls": {}})

    @pytest.mark.parametrize("value", [None, "latest", "", "  "])
    def test_latest_version_means_default(self, value):
        assert PhaseRequest(phase_number=1, prompt_version=value).prompt_version is None

    def test_explicit_version_kept(self):
        assert PhaseRequest(phase_number=1, prompt_version=" 1.2.0 ").prompt_version == "1.2.0"

    def test_has_image(self, image_data_url):
        assert PhaseRequest(phase_number=1, image=image_data_url).has_image
        assert not PhaseRequest(phase_number=1, image="").has_image


class TestResultAndEnvelopes:
    def test_result_frozen(self):
        r = PhaseResult(phase_number=1, version="1.0.0", data={}, result_locator="x", timestamp=NOW)
        with pytest.raises(ValidationError):
            r.data = {"changed": True}  # type: ignore[misc]

    def test_success_envelope_shape(self):
        r = PhaseResult(phase_number=6, version="1.0.0", data={"k": 1},
                        result_locator="/data/x.json", timestamp=NOW)
        env = SuccessEnvelope.from_result(r, is_final=True)
        assert env.status_code == 200
        assert env.to_dict() == {
            "success": True,
            "phase": 6,
            "result": {"k": 1},
            "resultLocator": "/data/x.json",
            "metadata": {
                "promptVersion": "1.0.0",
                "timestamp": "2026-05-01T12:00:00Z",
                "isFinal": True,
            },
        }

    def test_is_final_omitted_for_intermediate(self):
        r = PhaseResult(phase_number=2, version="1.0.0", data={}, result_locator="x", timestamp=NOW)
        assert "isFinal" not in SuccessEnvelope.from_result(r, is_final=False).to_dict()["metadata"]

    def test_error_envelope_shape(self):
        env = ErrorEnvelope(error="bad", code="VALIDATION_ERROR", errors=["a: b"], status_code=400)
        assert env.to_dict() == {"error": "bad", "code": "VALIDATION_ERROR", "errors": ["a: b"]}
        assert env.success is False

    def test_error_envelope_without_errors(self):
        env = ErrorEnvelope(error="x", code="INTERNAL_ERROR")
        assert env.to_dict() == {"error": "x", "code": "INTERNAL_ERROR"}
        assert env.status_code == 500

    def test_states(self):
        assert [s.value for s in PhaseState] == [
            "pending", "prompt_resolved", "invoked", "validated", "persisted", "done", "failed",
        ]


class TestErrors:
    @pytest.mark.parametrize("exc,code,status", [
        (InputInvalidError("x"), "VALIDATION_ERROR", 400),
        (PromptNotFoundError(2), "PROMPT_NOT_FOUND", 404),
        (InferenceError("x"), "INFERENCE_ERROR", 502),
        (PhaseValidationError(1, ["a"]), "VALIDATION_ERROR", 400),
        (UnauthorizedError("x"), "UNAUTHORIZED", 403),
        (PipelineError("x"), "INTERNAL_ERROR", 500),
    ])
    def test_codes(self, exc, code, status):
        assert isinstance(exc, PipelineError)
        assert exc.code == code
        assert exc.status_code == status

    def test_prompt_not_found_message(self):
        assert str(PromptNotFoundError(3, "9.9.9")) == "Phase 3 prompt version '9.9.9' not found"
        assert str(PromptNotFoundError(3)) == "Phase 3 prompt not found"

    def test_validation_error_keeps_list(self):
        exc = PhaseValidationError(5, ["a: x", "b: y"])
        assert exc.errors == ["a: x", "b: y"]
        assert "2 errors" in exc.message
