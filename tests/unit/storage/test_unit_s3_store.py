# tests/unit/storage/test_unit_s3_store.py — v1
"""Tests for storage/s3_store.py: mocked S3 client."""

from __future__ import annotations

import io
from unittest.mock import MagicMock, patch

import pytest

from plan2bim.storage.base_blob_store import BlobNotFoundError
from plan2bim.storage.s3_store import S3BlobStore


class FakeClientError(Exception):
    def __init__(self, code: str, operation: str):
        super().__init__(f"{operation}: {code}")
        self.response = {"Error": {"Code": code}}


@pytest.fixture
def objects() -> dict[str, bytes]:
    return {}


@pytest.fixture
def mock_s3_store(objects):
    """Create S3BlobStore with mocked boto3 client."""
    mock_client = MagicMock()

    def put_object(Bucket, Key, Body, **kwargs):
        objects[Key] = Body if isinstance(Body, bytes) else Body.encode("utf-8")

    def get_object(Bucket, Key):
        if Key not in objects:
            raise FakeClientError("NoSuchKey", "GetObject")
        return {"Body": io.BytesIO(objects[Key])}

    def head_object(Bucket, Key):
        if Key not in objects:
            raise FakeClientError("404", "HeadObject")
        return {}

    def delete_object(Bucket, Key):
        objects.pop(Key, None)

    def paginate(Bucket, Prefix):
        keys = sorted(k for k in objects if k.startswith(Prefix))
        # two pages to exercise pagination
        half = len(keys) // 2
        yield {"Contents": [{"Key": k} for k in keys[:half]]}
        yield {"Contents": [{"Key": k} for k in keys[half:]]} if keys[half:] else {}

    paginator = MagicMock()
    paginator.paginate = paginate

    mock_client.put_object = MagicMock(side_effect=put_object)
    mock_client.get_object = get_object
    mock_client.head_object = head_object
    mock_client.delete_object = delete_object
    mock_client.get_paginator = MagicMock(return_value=paginator)
    mock_client.exceptions = MagicMock()
    mock_client.exceptions.ClientError = FakeClientError

    with patch("plan2bim.storage.s3_store.S3BlobStore.__init__", return_value=None):
        store = S3BlobStore.__new__(S3BlobStore)
        store._s3 = mock_client
        store._bucket = "test-bucket"
        store._prefix = "plan2bim/"

    return store


class TestS3BlobStore:
    @pytest.mark.asyncio
    async def test_write_and_read(self, mock_s3_store, objects):
        await mock_s3_store.write("results/a.json", b"hello s3", content_type="application/json")
        assert await mock_s3_store.read("results/a.json") == b"hello s3"
        assert "plan2bim/results/a.json" in objects
        kwargs = mock_s3_store._s3.put_object.call_args.kwargs
        assert kwargs["ContentType"] == "application/json"

    @pytest.mark.asyncio
    async def test_write_string(self, mock_s3_store):
        await mock_s3_store.write("t.txt", "content string")
        assert await mock_s3_store.read("t.txt") == b"content string"

    @pytest.mark.asyncio
    async def test_read_missing(self, mock_s3_store):
        with pytest.raises(BlobNotFoundError):
            await mock_s3_store.read("nope.json")

    @pytest.mark.asyncio
    async def test_exists(self, mock_s3_store):
        assert await mock_s3_store.exists("x.json") is False
        await mock_s3_store.write("x.json", b"1")
        assert await mock_s3_store.exists("x.json") is True

    @pytest.mark.asyncio
    async def test_exists_other_error_propagates(self, mock_s3_store):
        def denied(Bucket, Key):
            raise FakeClientError("AccessDenied", "HeadObject")

        mock_s3_store._s3.head_object = denied
        with pytest.raises(FakeClientError):
            await mock_s3_store.exists("x.json")

    @pytest.mark.asyncio
    async def test_no_overwrite(self, mock_s3_store):
        await mock_s3_store.write("x.json", b"1", overwrite=False)
        with pytest.raises(FileExistsError):
            await mock_s3_store.write("x.json", b"2", overwrite=False)

    @pytest.mark.asyncio
    async def test_delete(self, mock_s3_store):
        await mock_s3_store.write("x.json", b"1")
        assert await mock_s3_store.delete("x.json") is True
        assert await mock_s3_store.delete("x.json") is False

    @pytest.mark.asyncio
    async def test_list_keys_strips_prefix(self, mock_s3_store):
        for key in ("results/p1/a.json", "results/p1/b.json", "results/p2/c.json", "prompts/x.json"):
            await mock_s3_store.write(key, b"{}")
        assert await mock_s3_store.list_keys("results/") == [
            "results/p1/a.json", "results/p1/b.json", "results/p2/c.json",
        ]

    def test_locator_roundtrip(self, mock_s3_store):
        locator = mock_s3_store.locator("results/a.json")
        assert locator == "s3://test-bucket/plan2bim/results/a.json"
        assert mock_s3_store.key_for(locator) == "results/a.json"

    def test_foreign_locator(self, mock_s3_store):
        with pytest.raises(BlobNotFoundError):
            mock_s3_store.key_for("s3://other-bucket/plan2bim/a.json")

    def test_backend_name(self, mock_s3_store):
        assert mock_s3_store.backend_name == "s3"


class TestS3Init:
    def test_client_kwargs(self):
        with patch("boto3.client") as client:
            store = S3BlobStore("bucket", prefix="p", region="eu-west-3",
                                endpoint_url="http://minio:9000")
        client.assert_called_once_with(
            "s3", region_name="eu-west-3", endpoint_url="http://minio:9000"
        )
        assert store.locator("k") == "s3://bucket/p/k"
