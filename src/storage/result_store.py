# src/storage/result_store.py — v2
"""Append-only persistence of validated phase results.

Every save writes a new uniquely named artifact plus a metadata sidecar;
nothing is ever overwritten. Artifacts are addressed by an opaque locator
(absolute path for the local backend, ``s3://`` URI for S3).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from plan2bim.config.settings import Settings
from plan2bim.storage import layout
from plan2bim.storage.base_blob_store import BaseBlobStore
from plan2bim.storage.models import ResultMetadata, StoredResult
from plan2bim.storage.store_factory import create_blob_store

logger = logging.getLogger(__name__)


class ResultStore:
    """Persist and retrieve phase results through a blob store."""

    def __init__(self, store: BaseBlobStore) -> None:
        self._store = store

    @property
    def store(self) -> BaseBlobStore:
        return self._store

    async def save(
        self,
        phase_number: int,
        version: str,
        data: Any,
        metadata: dict[str, Any] | None = None,
        session_id: str | None = None,
    ) -> str:
        """Persist a result under a fresh key and return its locator.

        Raises:
            ValueError: If data holds NaN or infinite numbers; nothing is written.
            OSError / botocore errors: Storage failures propagate.
        """
        now = datetime.now(timezone.utc)
        key = layout.result_key(phase_number, version, session_id, now=now)
        body = json.dumps(data, ensure_ascii=False, indent=2, allow_nan=False)
        await self._store.write(key, body, content_type="application/json", overwrite=False)

        meta = ResultMetadata(
            phase_number=phase_number,
            prompt_version=version,
            session_id=session_id,
            created_at=now,
            extra=metadata or {},
        )
        await self._store.write(
            layout.meta_key(key),
            meta.model_dump_json(indent=2),
            content_type="application/json",
            overwrite=False,
        )

        locator = self._store.locator(key)
        logger.info(
            "Saved phase %d result (%d bytes)", phase_number, len(body),
            extra={"data": {"locator": locator, "version": version}},
        )
        return locator

    async def load_bytes(self, locator: str) -> bytes:
        """Return the raw stored bytes for a locator.

        Raises:
            BlobNotFoundError: If nothing is stored at the locator.
        """
        return await self._store.read(self._store.key_for(locator))

    async def load(self, locator: str) -> Any:
        """Return the decoded JSON value stored at a locator."""
        return json.loads(await self.load_bytes(locator))

    async def load_metadata(self, locator: str) -> ResultMetadata:
        key = self._store.key_for(locator)
        raw = await self._store.read(layout.meta_key(key))
        return ResultMetadata.model_validate_json(raw)

    async def list_results(
        self,
        phase_number: int,
        version: str | None = None,
        session_id: str | None = None,
    ) -> list[StoredResult]:
        """List stored results for a phase, oldest first."""
        prefix = layout.results_prefix(phase_number, version, session_id)
        results = []
        for key in await self._store.list_keys(prefix):
            if not layout.is_result_key(key):
                continue
            # .../phase{N}/{version}/{file}
            parts = key.split("/")
            results.append(StoredResult(
                key=key,
                locator=self._store.locator(key),
                phase_number=phase_number,
                version=parts[-2],
            ))
        return results

    async def clear_session(self, session_id: str) -> int:
        """Delete every artifact of a session; return the number of results removed.

        Idempotent: clearing an unknown or already cleared session returns 0.
        """
        removed = 0
        for key in await self._store.list_keys(layout.session_prefix(session_id)):
            deleted = await self._store.delete(key)
            if deleted and layout.is_result_key(key):
                removed += 1
        logger.info("Cleared session %s (%d results)", session_id, removed)
        return removed


def create_result_store(settings: Settings) -> ResultStore:
    """Build a ResultStore on the configured backend."""
    return ResultStore(create_blob_store(settings))
