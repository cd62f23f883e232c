# src/storage/store_factory.py — v2
"""Factory: instantiate the blob store from configuration.

Called once per process; every component shares the returned instance.
"""

from __future__ import annotations

import logging

from plan2bim.config.settings import Settings
from plan2bim.storage.base_blob_store import BaseBlobStore
from plan2bim.storage.local_store import LocalBlobStore

logger = logging.getLogger(__name__)


def create_blob_store(settings: Settings) -> BaseBlobStore:
    """Create the appropriate blob store based on settings.

    Args:
        settings: Application settings (STORAGE_BACKEND env var).

    Returns:
        BaseBlobStore instance.

    Raises:
        ValueError: If the backend is not supported or misconfigured.
    """
    if settings.storage_backend == "local":
        logger.debug("Using local storage at %s", settings.storage_local_root)
        return LocalBlobStore(settings.storage_local_root)

    if settings.storage_backend == "s3":
        from plan2bim.storage.s3_store import S3BlobStore
        if not settings.storage_s3_bucket:
            raise ValueError(
                "STORAGE_S3_BUCKET must be set when STORAGE_BACKEND=s3"
            )
        logger.debug("Using S3 storage: bucket=%s", settings.storage_s3_bucket)
        return S3BlobStore(
            bucket=settings.storage_s3_bucket,
            prefix=settings.storage_s3_prefix,
            region=settings.storage_s3_region or None,
            endpoint_url=settings.storage_s3_endpoint_url or None,
        )

    raise ValueError(f"Unsupported storage backend: {settings.storage_backend!r}")
