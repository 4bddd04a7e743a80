# backend/otpvault/storage/blobs.py
"""Opaque ciphertext objects addressed by ``<owner>/<name>`` paths."""
from __future__ import annotations

import os
import tempfile
import time
from pathlib import Path
from typing import Iterator, Protocol

from otpvault.core.errors import StorageError


class BlobStore(Protocol):
    def put(self, path: str, data: bytes) -> None: ...

    def get(self, path: str) -> bytes: ...

    def delete(self, path: str) -> None: ...

    def exists(self, path: str) -> bool: ...

    def iter_paths(self) -> Iterator[tuple[str, float]]: ...


def validate_blob_path(path: str) -> list[str]:
    if not isinstance(path, str) or not path:
        raise StorageError("Empty blob path")
    if path.startswith("/") or "\\" in path or "\x00" in path:
        raise StorageError(f"Invalid blob path: {path!r}")
    parts = path.split("/")
    if any(p in ("", ".", "..") for p in parts):
        raise StorageError(f"Invalid blob path: {path!r}")
    return parts


class LocalBlobStore:
    """Filesystem blob store rooted at ``root``; writes are atomic via temp file + ``os.replace``."""

    def __init__(self, root: str | os.PathLike):
        self.root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        return self.root.joinpath(*validate_blob_path(path))

    def put(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=".upload-", dir=str(target.parent))
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(data)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp, target)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write blob {path}") from e

    def get(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return target.read_bytes()
        except FileNotFoundError as e:
            raise StorageError(f"Blob not found: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to read blob {path}") from e

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete blob {path}") from e

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def iter_paths(self) -> Iterator[tuple[str, float]]:
        """Yield ``(path, mtime)`` for every stored blob, skipping in-flight temp files."""
        if not self.root.exists():
            return
        for p in self.root.rglob("*"):
            if not p.is_file() or p.name.startswith(".upload-"):
                continue
            try:
                mtime = p.stat().st_mtime
            except FileNotFoundError:
                continue
            yield p.relative_to(self.root).as_posix(), mtime


def blob_age_seconds(mtime: float) -> float:
    return time.time() - mtime
