"""Append-only markdown log, one file per project."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import portalocker

from .errors import InvalidPathError, StorageIOError
from .locking import atomic_write_text, file_lock
from .models import SavedFileInfo, SavedFileType, epoch_millis, utc_now
from .renderer import has_semantic_header

SEPARATOR = "\n\n---\n\n"

logger = logging.getLogger(__name__)


def merge_content(existing: str, block: str) -> str:
    """Existing content followed by the separator and the new block."""
    if not existing:
        return block
    return existing + SEPARATOR + block


class AppendOnlyLog:
    """Owns ``<project>/<data_dir>/<filename>`` and only ever grows it.

    Each write reads the whole file, appends the separator and the new
    block, and replaces the file atomically under a lock.
    """

    def __init__(
        self,
        data_dir: str = "conclusion-data",
        filename: str = "conclusion.md",
        file_type: SavedFileType = SavedFileType.CONCLUSION,
        add_entry_headers: bool = True,
        lock_timeout: float = 10.0,
        clock: Callable[[], datetime] = utc_now,
        log: Optional[logging.Logger] = None,
    ):
        self.data_dir = data_dir
        self.filename = filename
        self.file_type = file_type
        self.add_entry_headers = add_entry_headers
        self.lock_timeout = lock_timeout
        self._clock = clock
        self._log = log or logger

    def path_for(self, project_path: str) -> Path:
        """Resolve the log file for a project.

        Raises:
            InvalidPathError: If project_path is empty.
        """
        if not project_path or not str(project_path).strip():
            raise InvalidPathError("No path provided to save files")
        return Path(project_path).resolve() / self.data_dir / self.filename

    def read(self, project_path: str) -> str:
        """Current file content, or an empty string if nothing was written yet."""
        path = self.path_for(project_path)
        if not path.exists():
            return ""
        return path.read_text(encoding="utf-8")

    def prepare_block(self, block: str, now: datetime) -> str:
        """Prefix a timestamp header unless the block already carries one."""
        if not self.add_entry_headers:
            return block
        if has_semantic_header(block):
            self._log.debug("Preserving semantic header format")
            return block
        self._log.debug("Adding timestamp header to entry")
        local = now.astimezone()
        header = f"## Entry at {local.strftime('%Y-%m-%d')} {local.strftime('%H:%M:%S')}"
        return f"{header}\n\n{block}"

    def _write(self, path: Path, block: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with file_lock(path, timeout=self.lock_timeout):
                if path.exists():
                    existing = path.read_text(encoding="utf-8")
                    self._log.info("Adding new entry to existing file %s", path)
                else:
                    existing = ""
                    self._log.info("Creating new file %s", path)
                atomic_write_text(path, merge_content(existing, block))
        except (OSError, UnicodeError, portalocker.LockException) as e:
            raise StorageIOError(f"Error writing {path}: {e}") from e

    def append(self, project_path: str, block: str) -> SavedFileInfo:
        """Append a block to the project's log file.

        Returns:
            SavedFileInfo for the file; on I/O failure its ``error`` is set
            and the previous file content is left as it was.

        Raises:
            InvalidPathError: If project_path is empty (before any I/O).
        """
        path = self.path_for(project_path)
        now = self._clock()
        prepared = self.prepare_block(block, now)

        try:
            self._write(path, prepared)
        except StorageIOError as e:
            self._log.error("Error saving %s entry: %s", self.file_type.value, e)
            return SavedFileInfo(
                file_path=str(path),
                type=self.file_type,
                timestamp=epoch_millis(self._clock()),
                error=str(e),
            )

        return SavedFileInfo(
            file_path=str(path),
            type=self.file_type,
            timestamp=epoch_millis(self._clock()),
        )
