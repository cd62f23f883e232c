# src/storage/local_store.py — v3
"""Local filesystem blob store (default backend).

Locators are absolute filesystem paths.
"""

from __future__ import annotations

from pathlib import Path

from plan2bim.storage.base_blob_store import BaseBlobStore, BlobNotFoundError


class LocalBlobStore(BaseBlobStore):
    """Store blobs as files below a root directory."""

    def __init__(self, root: str | Path) -> None:
        """Initialize with the storage root (created lazily on first write)."""
        self._root = Path(root).expanduser().resolve()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def backend_name(self) -> str:
        return "local"

    def _resolve(self, key: str) -> Path:
        """Resolve a key relative to root, refusing paths that escape it."""
        path = (self._root / key).resolve()
        if path != self._root and self._root not in path.parents:
            raise ValueError(f"Key escapes storage root: {key!r}")
        return path

    async def write(
        self,
        key: str,
        content: bytes | str,
        content_type: str | None = None,
        overwrite: bool = True,
    ) -> None:
        """Write content to a local file path."""
        p = self._resolve(key)
        p.parent.mkdir(parents=True, exist_ok=True)
        body = content.encode("utf-8") if isinstance(content, str) else content
        mode = "wb" if overwrite else "xb"
        with open(p, mode) as fh:
            fh.write(body)

    async def read(self, key: str) -> bytes:
        p = self._resolve(key)
        if not p.is_file():
            raise BlobNotFoundError(f"No blob at {key!r}")
        return p.read_bytes()

    async def exists(self, key: str) -> bool:
        return self._resolve(key).is_file()

    async def delete(self, key: str) -> bool:
        p = self._resolve(key)
        if not p.is_file():
            return False
        p.unlink()
        return True

    async def list_keys(self, prefix: str) -> list[str]:
        """List files whose root-relative key starts with ``prefix``."""
        # Walk from the deepest directory fully contained in the prefix
        base = prefix.rsplit("/", 1)[0] if "/" in prefix else ""
        start = self._resolve(base) if base else self._root
        if not start.is_dir():
            return []
        keys = []
        for path in start.rglob("*"):
            if not path.is_file():
                continue
            key = path.relative_to(self._root).as_posix()
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)

    def locator(self, key: str) -> str:
        return str(self._resolve(key))

    def key_for(self, locator: str) -> str:
        path = Path(locator)
        if not path.is_absolute():
            return self._resolve(locator).relative_to(self._root).as_posix()
        try:
            return path.resolve().relative_to(self._root).as_posix()
        except ValueError as exc:
            raise BlobNotFoundError(f"Locator outside storage root: {locator!r}") from exc
