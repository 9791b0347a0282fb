"""Avatar blob storage. put(key, bytes) returns the public URL; get(key) reads it back."""

import logging
import re
from pathlib import Path
from typing import Protocol

_LOG = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class BlobStoreError(RuntimeError):
    """Raised when a blob cannot be written or the key is invalid."""

    pass


class BlobStore(Protocol):
    def put(self, key: str, data: bytes, content_type: str) -> str: ...

    def get(self, key: str) -> bytes | None: ...


def safe_filename(filename: str | None, default: str = "avatar") -> str:
    """Filename reduced to [A-Za-z0-9._-]; never empty, never a dot-only name."""
    name = _UNSAFE_CHARS.sub("_", Path(filename or "").name).strip("._")
    return name or default


class LocalBlobStore:
    """Filesystem-backed store. Keys are relative paths under root; URLs are base_url/key."""

    def __init__(self, root: str | Path, base_url: str):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if path == self.root or self.root not in path.parents:
            raise BlobStoreError(f"Invalid blob key: {key!r}")
        return path

    def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise BlobStoreError(f"Failed to write blob {key!r}: {e}") from e
        _LOG.info("stored blob key=%s bytes=%d content_type=%s", key, len(data), content_type)
        return f"{self.base_url}/{key}"

    def get(self, key: str) -> bytes | None:
        try:
            path = self._path(key)
        except BlobStoreError:
            return None
        if not path.is_file():
            return None
        return path.read_bytes()
