# src/storage/base_blob_store.py — v1
"""Abstract key-value blob store shared by prompts and phase results."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BlobNotFoundError(FileNotFoundError):
    """Raised when a key or locator does not resolve to a stored blob."""


class BaseBlobStore(ABC):
    """Unified interface for storage backends (local disk, S3)."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Backend identifier (local, s3)."""

    @abstractmethod
    async def write(
        self,
        key: str,
        content: bytes | str,
        content_type: str | None = None,
        overwrite: bool = True,
    ) -> None:
        """Write content under ``key``.

        Raises:
            FileExistsError: If ``overwrite`` is False and the key exists.
        """

    @abstractmethod
    async def read(self, key: str) -> bytes:
        """Read content stored under ``key``.

        Raises:
            BlobNotFoundError: If the key does not exist.
        """

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if ``key`` exists."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete ``key``; return False if it did not exist."""

    @abstractmethod
    async def list_keys(self, prefix: str) -> list[str]:
        """List all keys under ``prefix`` (recursive), sorted."""

    @abstractmethod
    def locator(self, key: str) -> str:
        """Return the externally visible locator for ``key``."""

    @abstractmethod
    def key_for(self, locator: str) -> str:
        """Map a locator returned by :meth:`locator` back to its key."""
