# src/prompts/repository.py — v1
"""Prompt repository backed by the blob store.

Resolution policy for ``resolve(phase, version)``:

1. explicit version: exact match for that phase, else nothing;
2. otherwise the version flagged active;
3. otherwise the most recently created version (ties: highest version);
4. otherwise nothing. Callers decide whether a default template applies.

Records are stored as JSON at ``prompts/phase{N}/v{version}.json``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from plan2bim.config.phases import PHASES, is_valid_phase
from plan2bim.prompts.models import PromptVersion
from plan2bim.storage import layout
from plan2bim.storage.base_blob_store import BaseBlobStore, BlobNotFoundError

logger = logging.getLogger(__name__)

LATEST = "latest"

DEFAULT_PROMPT_TEMPLATE = (
    "You are analysing an architectural floor plan for BIM reconstruction.\n"
    "Task: {description} (phase {number}, {name}).\n"
    "Respond with a single JSON object only, wrapped in a ```json fenced block."
)


class PromptRepository:
    """Read and administer phase prompt versions."""

    def __init__(self, store: BaseBlobStore) -> None:
        self._store = store

    # --- Read path ---

    async def list_versions(self, phase_number: int) -> list[PromptVersion]:
        """Return all stored versions of a phase, newest first."""
        versions: list[PromptVersion] = []
        for key in await self._store.list_keys(layout.prompt_phase_prefix(phase_number)):
            if not key.endswith(".json"):
                continue
            try:
                versions.append(await self._read(key))
            except (ValidationError, ValueError) as exc:
                logger.warning("Skipping unreadable prompt record %s: %s", key, exc)
        versions.sort(key=_recency, reverse=True)
        return versions

    async def get(self, key: str) -> PromptVersion | None:
        try:
            return await self._read(key)
        except BlobNotFoundError:
            return None

    async def resolve(
        self, phase_number: int, explicit_version: str | None = None
    ) -> PromptVersion | None:
        """Resolve the authoritative prompt for a phase, or None."""
        if explicit_version and explicit_version != LATEST:
            found = await self.get(layout.prompt_key(phase_number, explicit_version))
            logger.debug(
                "Phase %d explicit prompt %s: %s",
                phase_number, explicit_version, "found" if found else "missing",
            )
            return found

        versions = await self.list_versions(phase_number)
        if not versions:
            return None
        active = [v for v in versions if v.is_active]
        # list_versions is newest first, so the first active entry wins
        chosen = active[0] if active else versions[0]
        logger.debug("Phase %d resolved prompt v%s", phase_number, chosen.version)
        return chosen

    # --- Admin write path ---

    async def save(
        self,
        phase_number: int,
        version: str,
        content: str,
        is_active: bool = False,
        created_at: datetime | None = None,
    ) -> PromptVersion:
        """Store a new prompt version. Existing versions are never overwritten.

        Raises:
            ValueError: If the phase number is unknown.
            FileExistsError: If this version already exists for the phase.
        """
        if not is_valid_phase(phase_number):
            raise ValueError(f"Invalid phase number: {phase_number}")

        now = created_at or datetime.now(timezone.utc)
        record = PromptVersion(
            key=layout.prompt_key(phase_number, version),
            phase_number=phase_number,
            version=version,
            content=content,
            is_active=False,
            created_at=now,
            updated_at=now,
        )
        await self._write(record, overwrite=False)
        logger.info("Saved prompt phase %d v%s (%d chars)", phase_number, version, len(content))

        if is_active:
            record = await self.set_active(phase_number, record.key)
        return record

    async def set_active(self, phase_number: int, key: str) -> PromptVersion:
        """Flag ``key`` as the active version, clearing the flag on the others.

        Raises:
            BlobNotFoundError: If ``key`` does not name a version of this phase.
        """
        target = await self.get(key)
        if target is None or target.phase_number != phase_number:
            raise BlobNotFoundError(f"Prompt {key!r} not found for phase {phase_number}")

        now = datetime.now(timezone.utc)
        activated = target
        for version in await self.list_versions(phase_number):
            should_be_active = version.key == key
            if version.is_active == should_be_active:
                if should_be_active:
                    activated = version
                continue
            updated = version.model_copy(
                update={"is_active": should_be_active, "updated_at": now}
            )
            await self._write(updated, overwrite=True)
            if should_be_active:
                activated = updated

        logger.info("Activated prompt phase %d v%s", phase_number, activated.version)
        return activated

    async def delete(self, key: str) -> bool:
        deleted = await self._store.delete(key)
        if deleted:
            logger.info("Deleted prompt %s", key)
        return deleted

    async def bootstrap(self, directory: str | Path, version: str = "1.0.0") -> list[PromptVersion]:
        """Load ``phase{N}.md`` files as active versions for phases with none stored.

        Explicit administrative step; never invoked during resolution.
        """
        directory = Path(directory)
        loaded: list[PromptVersion] = []
        for phase in PHASES:
            if await self.list_versions(phase.number):
                continue
            path = directory / f"{phase.key}.md"
            if not path.is_file():
                logger.warning("Bootstrap: no prompt file for phase %d at %s", phase.number, path)
                continue
            content = path.read_text(encoding="utf-8")
            loaded.append(await self.save(phase.number, version, content, is_active=True))
        logger.info("Bootstrap complete: %d prompts loaded", len(loaded))
        return loaded

    # --- Internals ---

    async def _read(self, key: str) -> PromptVersion:
        return PromptVersion.model_validate_json(await self._store.read(key))

    async def _write(self, record: PromptVersion, overwrite: bool) -> None:
        await self._store.write(
            record.key,
            record.model_dump_json(indent=2),
            content_type="application/json",
            overwrite=overwrite,
        )


def _recency(version: PromptVersion) -> tuple:
    return (version.created_at, version.version_tuple())


def default_template(phase_number: int) -> str:
    """Render the generic fallback template for a phase."""
    phase = next(p for p in PHASES if p.number == phase_number)
    return DEFAULT_PROMPT_TEMPLATE.format(
        description=phase.description, number=phase.number, name=phase.name
    )
