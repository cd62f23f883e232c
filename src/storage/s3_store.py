# src/storage/s3_store.py — v2
"""S3-compatible blob store (STORAGE_BACKEND=s3).

Supports AWS S3, MinIO, and other S3-compatible storage.
Requires 'boto3' package: pip install boto3.
Locators take the form ``s3://{bucket}/{prefix}{key}``.
"""

from __future__ import annotations

import logging

from plan2bim.storage.base_blob_store import BaseBlobStore, BlobNotFoundError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class S3BlobStore(BaseBlobStore):
    """Store blobs in S3-compatible object storage."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "plan2bim/",
        region: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        """Initialize S3 store.

        Args:
            bucket: S3 bucket name.
            prefix: Key prefix for all objects (e.g. "plan2bim/").
            region: AWS region (optional, uses boto3 default if not set).
            endpoint_url: Custom endpoint for MinIO/compatible storage.
        """
        try:
            import boto3
        except ImportError as e:
            raise ImportError(
                "boto3 package required for S3 storage: pip install boto3"
            ) from e

        kwargs: dict = {}
        if region:
            kwargs["region_name"] = region
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url

        self._s3 = boto3.client("s3", **kwargs)
        self._bucket = bucket
        self._prefix = prefix.rstrip("/") + "/" if prefix else ""

    @property
    def backend_name(self) -> str:
        return "s3"

    def _full_key(self, key: str) -> str:
        """Build the full S3 key from a store-relative key."""
        return f"{self._prefix}{key}"

    @staticmethod
    def _is_not_found(exc: Exception) -> bool:
        response = getattr(exc, "response", None) or {}
        code = str(response.get("Error", {}).get("Code", ""))
        return code in _NOT_FOUND_CODES

    async def write(
        self,
        key: str,
        content: bytes | str,
        content_type: str | None = None,
        overwrite: bool = True,
    ) -> None:
        """Write content to S3."""
        full_key = self._full_key(key)
        if not overwrite and await self.exists(key):
            raise FileExistsError(f"Object already exists: s3://{self._bucket}/{full_key}")

        body = content.encode("utf-8") if isinstance(content, str) else content
        params: dict = {"Bucket": self._bucket, "Key": full_key, "Body": body}
        if content_type:
            params["ContentType"] = content_type
        self._s3.put_object(**params)
        logger.debug("S3 write: s3://%s/%s (%d bytes)", self._bucket, full_key, len(body))

    async def read(self, key: str) -> bytes:
        """Read content from S3."""
        full_key = self._full_key(key)
        try:
            response = self._s3.get_object(Bucket=self._bucket, Key=full_key)
        except self._s3.exceptions.ClientError as exc:
            if self._is_not_found(exc):
                raise BlobNotFoundError(f"No object at s3://{self._bucket}/{full_key}") from exc
            raise
        return response["Body"].read()

    async def exists(self, key: str) -> bool:
        """Check if an S3 object exists."""
        try:
            self._s3.head_object(Bucket=self._bucket, Key=self._full_key(key))
        except self._s3.exceptions.ClientError as exc:
            if self._is_not_found(exc):
                return False
            raise
        return True

    async def delete(self, key: str) -> bool:
        if not await self.exists(key):
            return False
        self._s3.delete_object(Bucket=self._bucket, Key=self._full_key(key))
        logger.debug("S3 delete: s3://%s/%s", self._bucket, self._full_key(key))
        return True

    async def list_keys(self, prefix: str) -> list[str]:
        """List objects under a prefix (recursive, no delimiter)."""
        full_prefix = self._full_key(prefix)
        paginator = self._s3.get_paginator("list_objects_v2")

        keys: list[str] = []
        for page in paginator.paginate(Bucket=self._bucket, Prefix=full_prefix):
            for obj in page.get("Contents", []):
                keys.append(obj["Key"][len(self._prefix):])
        return sorted(keys)

    def locator(self, key: str) -> str:
        return f"s3://{self._bucket}/{self._full_key(key)}"

    def key_for(self, locator: str) -> str:
        head = f"s3://{self._bucket}/{self._prefix}"
        if locator.startswith(head):
            return locator[len(head):]
        if locator.startswith("s3://"):
            raise BlobNotFoundError(f"Locator outside this bucket/prefix: {locator!r}")
        return locator
