# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides valid phase payloads, a mock LLM client, an image data URL and
blob/result stores on a temp directory. All I/O is local or mocked.
"""

from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

from plan2bim.llm.models import ImageInput, LLMResponse
from plan2bim.storage.local_store import LocalBlobStore
from plan2bim.storage.result_store import ResultStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


# === FIXTURES: Phase payloads ===


@pytest.fixture
def phase1_payload() -> dict[str, Any]:
    return {
        "coordinateSystem": {
            "origin": {"x": 120, "y": 880},
            "scale": {"pixelsPerMeter": 50.0, "detectedUnit": "mm"},
            "rotation": 0,
        },
        "floorPlanBounds": {
            "topLeft": {"x": 100, "y": 80},
            "bottomRight": {"x": 1100, "y": 900},
        },
        "metadata": {"detectedFloorLevel": "1F", "confidence": 0.92},
    }


@pytest.fixture
def phase2_payload() -> dict[str, Any]:
    return {
        "walls": [
            {
                "id": "W1",
                "type": "exterior",
                "geometry": {"start": {"x": 0, "y": 0}, "end": {"x": 10, "y": 0}},
                "thickness": 0.2,
                "height": 2.7,
            },
            {
                "id": "W2",
                "type": "partition",
                "geometry": {"start": {"x": 5, "y": 0}, "end": {"x": 5, "y": 6}},
                "thickness": 0.1,
            },
        ],
        "columns": [
            {
                "id": "C1",
                "position": {"x": 0, "y": 0},
                "shape": "rectangular",
                "dimensions": {"width": 0.4, "depth": 0.4},
            }
        ],
        "metadata": {"totalWalls": 2, "totalColumns": 1, "confidence": 0.85},
    }


@pytest.fixture
def phase3_payload() -> dict[str, Any]:
    return {
        "doors": [
            {
                "id": "D1", "wallId": "W2", "type": "single",
                "position": {"x": 5, "y": 2}, "width": 0.9, "height": 2.1,
                "swingDirection": "left",
            }
        ],
        "windows": [
            {
                "id": "WN1", "wallId": "W1", "type": "sliding",
                "position": {"x": 3, "y": 0}, "width": 1.5, "height": 1.2,
                "sillHeight": 0.9,
            }
        ],
        "metadata": {"totalDoors": 1, "totalWindows": 1, "confidence": 0.8},
    }


@pytest.fixture
def phase4_payload() -> dict[str, Any]:
    return {
        "spaces": [
            {
                "id": "S1", "name": "Living room", "type": "living",
                "boundary": [{"x": 0, "y": 0}, {"x": 5, "y": 0}, {"x": 5, "y": 6}, {"x": 0, "y": 6}],
                "area": 30.0,
                "adjacentSpaces": ["S2"],
            },
            {
                "id": "S2", "name": "Bedroom", "type": "bedroom",
                "boundary": [{"x": 5, "y": 0}, {"x": 10, "y": 0}, {"x": 10, "y": 6}, {"x": 5, "y": 6}],
                "area": 30.0,
            },
        ],
        "metadata": {"totalSpaces": 2, "totalArea": 60.0, "confidence": 0.75},
    }


@pytest.fixture
def phase5_payload() -> dict[str, Any]:
    return {
        "dimensions": {
            "walls": [{"wallId": "W1", "length": 10.0, "thickness": 0.2, "height": 2.7}],
            "spaces": [
                {"spaceId": "S1", "width": 5.0, "length": 6.0, "height": 2.7,
                 "area": 30.0, "volume": 81.0}
            ],
            "openings": [{"openingId": "D1", "width": 0.9, "height": 2.1}],
        },
        "metadata": {"unit": "m", "confidence": 0.7},
    }


@pytest.fixture
def phase6_payload() -> dict[str, Any]:
    return {
        "metadata": {"version": "1.0", "createdAt": "2026-01-01T00:00:00Z", "unit": "m"},
        "coordinateSystem": {"origin": {"x": 0, "y": 0}, "scale": 50.0, "rotation": 0},
        "building": {
            "walls": [{"id": "W1"}, {"id": "W2"}],
            "doors": [{"id": "D1"}],
            "windows": [{"id": "WN1"}],
            "spaces": [{"id": "S1"}, {"id": "S2"}],
        },
        "dimensions": {"totalArea": 60.0, "totalVolume": 162.0, "wallLength": 16.0},
        "verification": {"confidence": 0.8, "issues": []},
    }


@pytest.fixture
def phase_payloads(
    phase1_payload, phase2_payload, phase3_payload,
    phase4_payload, phase5_payload, phase6_payload,
) -> dict[int, dict[str, Any]]:
    return {
        1: phase1_payload, 2: phase2_payload, 3: phase3_payload,
        4: phase4_payload, 5: phase5_payload, 6: phase6_payload,
    }


# === FIXTURES: Inputs ===


@pytest.fixture
def image_data_url() -> str:
    return "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
def image_input() -> ImageInput:
    return ImageInput(data=PNG_BYTES, media_type="image/png")


# === FIXTURES: LLM mocks ===


def make_llm_response(content: str) -> LLMResponse:
    return LLMResponse(
        content=content,
        input_tokens=100,
        output_tokens=50,
        model="gemini-test",
        provider="google",
        latency_ms=250,
    )


def fenced(payload: Any) -> str:
    """Wrap a payload the way the model usually answers."""
    return "Here is the analysis:\n```json\n" + json.dumps(payload) + "\n```\n"


@pytest.fixture
def mock_llm_response(phase1_payload) -> LLMResponse:
    """Standard mock LLM response carrying a valid phase 1 payload."""
    return make_llm_response(fenced(phase1_payload))


@pytest.fixture
def mock_llm_client(mock_llm_response: LLMResponse) -> AsyncMock:
    """Mock BaseLLMClient that returns mock_llm_response."""
    client = AsyncMock()
    client.complete = AsyncMock(return_value=mock_llm_response)
    client.complete_with_vision = AsyncMock(return_value=mock_llm_response)
    client.supports_vision = True
    client.provider_name = "mock"
    return client


# === FIXTURES: Storage ===


@pytest.fixture
def blob_store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "data")


@pytest.fixture
def result_store(blob_store: LocalBlobStore) -> ResultStore:
    return ResultStore(blob_store)


@pytest.fixture
def make_reply():
    """Build an LLMResponse from a payload (fenced JSON) or a raw string."""

    def _make(payload: Any) -> LLMResponse:
        content = payload if isinstance(payload, str) else fenced(payload)
        return make_llm_response(content)

    return _make
