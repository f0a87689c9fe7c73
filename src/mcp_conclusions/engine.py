"""Conclusion store - renders, persists, and indexes recorded conclusions."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .config import StoreConfig
from .errors import (
    ConclusionStoreError,
    IndexingError,
    InvalidPathError,
    RenderError,
    StorageIOError,
)
from .index import ConclusionIndex
from .models import (
    ConclusionMetadata,
    ConclusionOptions,
    SavedFileInfo,
    SavedFileType,
    StoreState,
    ThoughtEntry,
)
from .renderer import ConclusionRenderer, MetadataBuilder
from .storage import AppendOnlyLog
from .templates import TemplateEngine

__all__ = [
    "ConclusionStore",
    "ConclusionStoreError",
    "IndexingError",
    "InvalidPathError",
    "RenderError",
    "StorageIOError",
]

logger = logging.getLogger(__name__)


class ConclusionStore:
    """Facade over rendering, the append-only log, and the search index.

    Calls may arrive from several threads; the store lock serializes them.
    The index is private to the store and mutated only from the write path.
    """

    def __init__(self, config: Optional[StoreConfig] = None, log: Optional[logging.Logger] = None):
        self.config = config or StoreConfig()
        self.log = log or logger
        self.project_path: Optional[str] = None

        self.templates = TemplateEngine(log=self.log)
        for name, body in self.config.templates.items():
            self.templates.register(name, body)

        self.metadata_builder = MetadataBuilder(
            default_category=self.config.default_category,
            default_impact_level=self.config.default_impact_level,
            log=self.log,
        )
        self.renderer = ConclusionRenderer(
            self.templates,
            self.metadata_builder,
            template_name=self.config.template,
            log=self.log,
        )
        self.conclusion_log = AppendOnlyLog(
            data_dir=self.config.data_dir,
            filename=self.config.conclusion_file,
            file_type=SavedFileType.CONCLUSION,
            lock_timeout=self.config.lock_timeout,
            log=self.log,
        )
        self.thought_log = AppendOnlyLog(
            data_dir=self.config.data_dir,
            filename=self.config.thoughts_file,
            file_type=SavedFileType.THOUGHT,
            add_entry_headers=False,
            lock_timeout=self.config.lock_timeout,
            log=self.log,
        )
        self.index = ConclusionIndex(min_token_length=self.config.min_token_length, log=self.log)
        self._metadata: dict[str, ConclusionMetadata] = {}
        # Held across record, append_raw and search
        self._lock = threading.RLock()

    @property
    def state(self) -> StoreState:
        if self.project_path is None:
            return StoreState.UNINITIALIZED
        return StoreState.BOUND

    def _bind(self, project_path: str) -> None:
        if not project_path or not str(project_path).strip():
            raise InvalidPathError("No path provided to save files")
        self.project_path = project_path

    # ========== Write Operations ==========

    def record(
        self,
        project_path: str,
        why_change: str,
        what_change: str,
        options: Optional[ConclusionOptions] = None,
        thoughts: Optional[list[ThoughtEntry]] = None,
    ) -> list[SavedFileInfo]:
        """Render a conclusion, append it to the project log, and index it.

        Thoughts supplied alongside are saved first, each to the thoughts
        file; the conclusion's save result is always the last element.

        Returns:
            Save results; a failed write is reported through its ``error``.

        Raises:
            InvalidPathError: If project_path is empty.
        """
        with self._lock:
            return self._record(project_path, why_change, what_change, options, thoughts)

    def _record(
        self,
        project_path: str,
        why_change: str,
        what_change: str,
        options: Optional[ConclusionOptions],
        thoughts: Optional[list[ThoughtEntry]],
    ) -> list[SavedFileInfo]:
        self._bind(project_path)
        options = options or ConclusionOptions()
        thoughts = thoughts or []

        # Call hook if defined; it may return replacement options
        if "pre_record" in self.config.hooks:
            options = self.config.hooks["pre_record"](options, thoughts) or options

        saved: list[SavedFileInfo] = []
        for thought in thoughts:
            result = self.thought_log.append(project_path, thought.to_markdown())
            if not result.success:
                self.log.error("Error saving thought %d", thought.thought_number)
            saved.append(result)

        markdown, metadata = self.renderer.render(why_change, what_change, options, thoughts)
        result = self.conclusion_log.append(project_path, markdown)
        result.conclusion_id = metadata.id
        saved.append(result)

        if result.success:
            self._metadata[metadata.id] = metadata
            try:
                self._index_conclusion(metadata.id, markdown)
            except IndexingError:
                self.log.error("Error indexing conclusion %s", metadata.id, exc_info=True)

        if "post_record" in self.config.hooks:
            self.config.hooks["post_record"](metadata, saved)

        return saved

    def _index_conclusion(self, conclusion_id: str, markdown: str) -> None:
        try:
            self.index.index(conclusion_id, markdown)
        except Exception as e:
            raise IndexingError(f"Failed to index {conclusion_id}: {e}") from e

    def append_raw(self, project_path: str, text: str) -> SavedFileInfo:
        """Append text to the conclusion log without metadata or indexing.

        Raises:
            InvalidPathError: If project_path is empty.
        """
        with self._lock:
            self._bind(project_path)
            return self.conclusion_log.append(project_path, text)

    def append_interaction_summary(
        self,
        project_path: str,
        thought_number: int,
        total_thoughts: int,
        what: str,
        why: str,
    ) -> Optional[SavedFileInfo]:
        """Record a short summary of the current interaction.

        Returns:
            The save result, or None if the summary could not be written.
        """
        summary = (
            f"## Interaction Summary {thought_number}/{total_thoughts}\n"
            f"\n"
            f"### Why it was done\n"
            f"{why}\n"
            f"\n"
            f"### What was done\n"
            f"{what}"
        )
        try:
            result = self.append_raw(project_path, summary)
        except ConclusionStoreError:
            self.log.error("Error recording interaction summary", exc_info=True)
            return None
        if not result.success:
            return None
        return result

    # ========== Read Operations ==========

    def search(self, query: str, limit: Optional[int] = None) -> list[str]:
        """Conclusion ids matching the query, most relevant first."""
        try:
            with self._lock:
                ids = self.index.search(query)
        except Exception:
            self.log.error("Error searching conclusions", exc_info=True)
            return []
        if limit is not None:
            ids = ids[:limit]
        return ids

    def get_metadata(self, conclusion_id: str) -> Optional[ConclusionMetadata]:
        """Metadata of a conclusion recorded during this store's lifetime."""
        return self._metadata.get(conclusion_id)

    def list_templates(self) -> list[dict]:
        return [
            {
                "name": name,
                "placeholders": self.templates.get(name).placeholders,
                "active": name == self.renderer.template_name,
            }
            for name in self.templates.list_templates()
        ]
