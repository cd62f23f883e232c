# tests/unit/storage/test_unit_result_store.py — v2
"""Tests for storage/result_store.py and storage/store_factory.py."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from plan2bim.config.settings import Settings
from plan2bim.storage.base_blob_store import BlobNotFoundError
from plan2bim.storage.local_store import LocalBlobStore
from plan2bim.storage.result_store import create_result_store
from plan2bim.storage.store_factory import create_blob_store


class TestSave:
    @pytest.mark.asyncio
    async def test_roundtrip_byte_identical(self, result_store, phase1_payload):
        locator = await result_store.save(1, "1.0.0", phase1_payload)
        assert locator
        raw = await result_store.load_bytes(locator)
        assert json.loads(raw) == phase1_payload
        assert await result_store.load(locator) == phase1_payload
        expected = json.dumps(phase1_payload, ensure_ascii=False, indent=2).encode("utf-8")
        assert raw == expected

    @pytest.mark.asyncio
    async def test_append_only(self, result_store, phase2_payload):
        first = await result_store.save(2, "1.0.0", phase2_payload, session_id="s1")
        changed = dict(phase2_payload, walls=[])
        second = await result_store.save(2, "1.0.0", changed, session_id="s1")
        assert first != second
        assert await result_store.load(first) == phase2_payload
        assert await result_store.load(second) == changed

    @pytest.mark.asyncio
    async def test_metadata_sidecar(self, result_store):
        locator = await result_store.save(
            4, "1.2.0", {"spaces": []}, metadata={"run_id": "r1"}, session_id="s9"
        )
        meta = await result_store.load_metadata(locator)
        assert meta.phase_number == 4
        assert meta.prompt_version == "1.2.0"
        assert meta.session_id == "s9"
        assert meta.extra == {"run_id": "r1"}

    @pytest.mark.asyncio
    async def test_load_missing(self, result_store, blob_store):
        with pytest.raises(BlobNotFoundError):
            await result_store.load(blob_store.locator("results/phase1/x/missing.json"))

    @pytest.mark.asyncio
    async def test_non_finite_refused_before_write(self, result_store, blob_store):
        with pytest.raises(ValueError):
            await result_store.save(1, "1.0.0", {"scale": float("inf"), "rotation": float("nan")})
        assert await blob_store.list_keys("") == []


class TestListAndClear:
    @pytest.mark.asyncio
    async def test_list_results(self, result_store):
        await result_store.save(3, "1.0.0", {"n": 1}, session_id="s")
        await result_store.save(3, "1.1.0", {"n": 2}, session_id="s")
        await result_store.save(2, "1.0.0", {"n": 3}, session_id="s")

        all_v = await result_store.list_results(3, session_id="s")
        assert sorted(r.version for r in all_v) == ["1.0.0", "1.1.0"]
        only = await result_store.list_results(3, version="1.1.0", session_id="s")
        assert len(only) == 1
        assert await result_store.load(only[0].locator) == {"n": 2}

    @pytest.mark.asyncio
    async def test_clear_session_counts_results(self, result_store):
        for n in range(3):
            await result_store.save(1, "1.0.0", {"n": n}, session_id="gone")
        kept = await result_store.save(1, "1.0.0", {"n": 9}, session_id="kept")

        assert await result_store.clear_session("gone") == 3
        assert await result_store.list_results(1, session_id="gone") == []
        assert await result_store.load(kept) == {"n": 9}

    @pytest.mark.asyncio
    async def test_clear_session_idempotent(self, result_store):
        await result_store.save(1, "1.0.0", {}, session_id="s")
        assert await result_store.clear_session("s") == 1
        assert await result_store.clear_session("s") == 0
        assert await result_store.clear_session("never-seen") == 0


class TestFactory:
    def test_local(self, tmp_path):
        store = create_blob_store(Settings(storage_local_root=tmp_path))
        assert isinstance(store, LocalBlobStore)
        assert store.root == tmp_path.resolve()

    def test_s3(self):
        settings = Settings(storage_backend="s3", storage_s3_bucket="plans",
                            storage_s3_region="eu-west-1")
        with patch("boto3.client"):
            store = create_blob_store(settings)
        assert store.backend_name == "s3"
        assert store.locator("k") == "s3://plans/plan2bim/k"

    def test_s3_without_bucket(self):
        settings = Settings.model_construct(storage_backend="s3", storage_s3_bucket="")
        with pytest.raises(ValueError, match="STORAGE_S3_BUCKET"):
            create_blob_store(settings)

    def test_create_result_store(self, tmp_path):
        store = create_result_store(Settings(storage_local_root=tmp_path))
        assert store.store.backend_name == "local"
