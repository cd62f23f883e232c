# src/storage/layout.py — v2
"""Blob key conventions for prompts and phase results.

    prompts/phase{N}/v{version}.json
    results/[session_{id}/]phase{N}/{version}/{timestamp}_{suffix}.json
    results/.../{timestamp}_{suffix}.meta.json     (metadata sidecar)
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone

PROMPTS_DIR = "prompts"
RESULTS_DIR = "results"
SESSION_PREFIX = "session_"
RESULT_SUFFIX = ".json"
META_SUFFIX = ".meta.json"

_UNSAFE_SEGMENT_RE = re.compile(r"[^A-Za-z0-9._-]+")


def safe_segment(value: str) -> str:
    """Make a value usable as a single path segment."""
    cleaned = _UNSAFE_SEGMENT_RE.sub("_", value.strip()).strip(".")
    if not cleaned:
        raise ValueError(f"Cannot build a path segment from {value!r}")
    return cleaned


# --- Prompts ---

def prompt_phase_prefix(phase_number: int) -> str:
    return f"{PROMPTS_DIR}/phase{phase_number}/"


def prompt_key(phase_number: int, version: str) -> str:
    return f"{prompt_phase_prefix(phase_number)}v{safe_segment(version)}.json"


# --- Results ---

def session_prefix(session_id: str) -> str:
    return f"{RESULTS_DIR}/{SESSION_PREFIX}{safe_segment(session_id)}/"


def results_prefix(
    phase_number: int | None = None,
    version: str | None = None,
    session_id: str | None = None,
) -> str:
    """Return the listing prefix for results, narrowest first available."""
    base = session_prefix(session_id) if session_id else f"{RESULTS_DIR}/"
    if phase_number is None:
        return base
    base += f"phase{phase_number}/"
    if version is not None:
        base += f"{safe_segment(version)}/"
    return base


def result_key(
    phase_number: int,
    version: str,
    session_id: str | None = None,
    now: datetime | None = None,
) -> str:
    """Build a fresh, unique result key (append-only storage)."""
    ts = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%S%fZ")
    suffix = uuid.uuid4().hex[:8]
    return f"{results_prefix(phase_number, version, session_id)}{ts}_{suffix}{RESULT_SUFFIX}"


def meta_key(result_key_: str) -> str:
    """Return the sidecar metadata key for a result key."""
    return result_key_[: -len(RESULT_SUFFIX)] + META_SUFFIX


def is_result_key(key: str) -> bool:
    """True for primary result artifacts (not metadata sidecars)."""
    return key.endswith(RESULT_SUFFIX) and not key.endswith(META_SUFFIX)
