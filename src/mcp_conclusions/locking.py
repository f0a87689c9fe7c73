"""File locking and atomic replacement for the conclusion log."""

from __future__ import annotations

import hashlib
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import portalocker


def lock_path_for(path: Path) -> Path:
    """Lock file for ``path``, kept in the temp directory.

    Lock files live outside the data directory so it only ever holds the
    data files themselves.
    """
    digest = hashlib.sha256(str(path.resolve()).encode("utf-8")).hexdigest()[:16]
    return Path(tempfile.gettempdir()) / f"mcp-conclusions-{digest}.lock"


@contextmanager
def file_lock(path: Path, timeout: float = 10.0) -> Generator[None, None, None]:
    """Hold an exclusive lock for a read-modify-write of ``path``.

    Args:
        path: File being protected
        timeout: Seconds to wait for lock

    Raises:
        portalocker.LockException: If lock cannot be acquired
    """
    lock_path = lock_path_for(path)
    lock_path.touch(exist_ok=True)

    with portalocker.Lock(lock_path, timeout=timeout):
        yield


def atomic_write_text(path: Path, content: str, encoding: str = "utf-8") -> None:
    """Replace a file's content in one step.

    The content goes to ``<path>.tmp`` first and is renamed over ``path`` only
    once fully written, so a failure leaves the previous file untouched.
    """
    tmp_path = path.with_suffix(path.suffix + ".tmp")

    try:
        with open(tmp_path, "w", encoding=encoding, newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink()
        raise
