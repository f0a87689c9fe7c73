"""Metadata normalization and markdown rendering for conclusions."""

from __future__ import annotations

import logging
import re
import threading
from datetime import datetime
from typing import Any, Callable, Optional

from .models import (
    CodeSnippet,
    ConclusionMetadata,
    ConclusionOptions,
    ImpactLevel,
    ThoughtEntry,
    epoch_millis,
    format_timestamp,
    generate_conclusion_id,
    utc_now,
)
from .templates import DEFAULT_TEMPLATE_NAME, METADATA_MARKER, TemplateEngine

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "feature"
DEFAULT_EMOJI = "✨"

# Conventional-commit categories
CATEGORY_EMOJI = {
    "feature": "✨",
    "docs": "📝",
    "test": "🧪",
    "refactor": "♻️",
    "fix": "🐛",
    "chore": "🔧",
    "style": "💄",
    "perf": "⚡",
}

_SEMANTIC_HEADER = re.compile(
    r"^## (?:" + "|".join(re.escape(e) for e in CATEGORY_EMOJI.values()) + ")"
)


def emoji_for(category: str) -> str:
    return CATEGORY_EMOJI.get(category, DEFAULT_EMOJI)


def has_semantic_header(text: str) -> bool:
    """True if text starts with the header a rendered conclusion carries."""
    return _SEMANTIC_HEADER.match(text) is not None


def metadata_marker(conclusion_id: str) -> str:
    return f"<!-- metadata:{conclusion_id} -->"


class MetadataBuilder:
    """Turns caller options into a fully populated ConclusionMetadata."""

    def __init__(
        self,
        default_category: str = DEFAULT_CATEGORY,
        default_impact_level: str = ImpactLevel.MEDIUM.value,
        clock: Callable[[], datetime] = utc_now,
        log: Optional[logging.Logger] = None,
    ):
        self.default_category = default_category
        self.default_impact_level = ImpactLevel(default_impact_level)
        self._clock = clock
        self._log = log or logger
        self._last_millis = 0
        self._id_lock = threading.Lock()

    def _next_millis(self, now: datetime) -> int:
        # Ids must stay unique even when two builds land in the same millisecond
        with self._id_lock:
            millis = max(epoch_millis(now), self._last_millis + 1)
            self._last_millis = millis
        return millis

    def _impact_level(self, value: Optional[str]) -> ImpactLevel:
        if value is None or value == "":
            return self.default_impact_level
        try:
            return ImpactLevel(str(value).lower())
        except ValueError:
            self._log.warning(
                "Unknown impact level %r, using %s", value, self.default_impact_level.value
            )
            return self.default_impact_level

    def build(
        self,
        options: Optional[ConclusionOptions] = None,
        thoughts: Optional[list[ThoughtEntry]] = None,
    ) -> ConclusionMetadata:
        """Build metadata with a fresh id and timestamp.

        Missing options resolve to defaults; this never raises on caller input.
        """
        options = options or ConclusionOptions()
        now = self._clock()

        metadata = ConclusionMetadata(
            id=generate_conclusion_id(self._next_millis(now)),
            timestamp=format_timestamp(now),
            category=options.category or self.default_category,
            sub_categories=list(options.sub_categories),
            tags=list(options.tags),
            impact_level=self._impact_level(options.impact_level),
            affected_files=list(options.affected_files),
            related_conclusions=list(options.related_conclusions),
            ticket_reference=options.ticket_reference or "",
            business_context=options.business_context or "",
            technical_context=options.technical_context or "",
        )

        if thoughts:
            metadata.thought_numbers = [t.thought_number for t in thoughts]

        return metadata


# ========== Formatters ==========

def format_affected_files(files: list[str]) -> str:
    if not files:
        return "No affected files specified."
    return "\n".join(f"- `{f}`" for f in files)


def format_affected_files_inline(files: list[str]) -> str:
    if not files:
        return "No affected files specified."
    return ", ".join(f"`{f}`" for f in files)


def format_alternatives(alternatives: list[str]) -> str:
    if not alternatives:
        return "No alternatives considered were specified."
    return "\n".join(f"{i}. {alt}" for i, alt in enumerate(alternatives, start=1))


def format_related_conclusions(conclusions: list[str]) -> str:
    if not conclusions:
        return "No related conclusions."
    return "\n".join(f"- {ref}" for ref in conclusions)


def format_code_snippets(snippets: list[CodeSnippet]) -> str:
    if not snippets:
        return ""

    parts = ["\n### 💻 Code Changes\n"]
    for i, snippet in enumerate(snippets, start=1):
        parts.append(f"#### Change {i} in `{snippet.file}`\n")
        parts.append(f"**Before:**\n```\n{snippet.before}\n```\n\n")
        parts.append(f"**After:**\n```\n{snippet.after}\n```\n\n")
    return "".join(parts)


def format_context(metadata: ConclusionMetadata) -> str:
    context = ""
    if metadata.business_context:
        context += f"#### Business Context\n{metadata.business_context}\n\n"
    if metadata.technical_context:
        context += f"#### Technical Context\n{metadata.technical_context}\n\n"
    return context or "No additional context provided."


def fallback_block(why_change: str, what_change: str) -> str:
    """Minimal block used when rendering fails."""
    return f"## Conclusion\n**Why:** {why_change}\n**What:** {what_change}\n"


class ConclusionRenderer:
    """Composes MetadataBuilder and TemplateEngine into one markdown block."""

    def __init__(
        self,
        templates: TemplateEngine,
        metadata_builder: MetadataBuilder,
        template_name: str = DEFAULT_TEMPLATE_NAME,
        log: Optional[logging.Logger] = None,
    ):
        self.templates = templates
        self.metadata_builder = metadata_builder
        self.template_name = template_name
        self._log = log or logger

    def template_data(
        self,
        metadata: ConclusionMetadata,
        why_change: str,
        what_change: str,
        options: ConclusionOptions,
    ) -> dict[str, Any]:
        """Data bag handed to the template engine."""
        data = metadata.to_template_data()
        data.update({
            "emoji": emoji_for(metadata.category),
            "whyChange": why_change,
            "whatChange": what_change,
            "context": format_context(metadata),
            "affectedFiles": format_affected_files(metadata.affected_files),
            "affectedFilesInline": format_affected_files_inline(metadata.affected_files),
            "alternatives": format_alternatives(options.alternatives_considered),
            "testing": options.testing_performed or "",
            "relatedConclusions": format_related_conclusions(metadata.related_conclusions),
            "codeSnippets": format_code_snippets(options.code_snippets),
        })
        return data

    def render(
        self,
        why_change: str,
        what_change: str,
        options: Optional[ConclusionOptions] = None,
        thoughts: Optional[list[ThoughtEntry]] = None,
    ) -> tuple[str, ConclusionMetadata]:
        """Render one conclusion.

        Returns:
            Tuple of (markdown, metadata). On a formatting error the markdown
            is the minimal why/what block instead.
        """
        options = options or ConclusionOptions()
        metadata = self.metadata_builder.build(options, thoughts)

        try:
            data = self.template_data(metadata, why_change, what_change, options)
            markdown = self.templates.render(self.template_name, data)
            # The template's marker comes after any caller text
            head, marker, tail = markdown.rpartition(METADATA_MARKER)
            if marker:
                markdown = head + metadata_marker(metadata.id) + tail
            else:
                self._log.warning(
                    "Template %s has no %s marker; conclusion %s is saved without its id",
                    self.template_name, METADATA_MARKER, metadata.id,
                )
        except Exception:
            self._log.error("Error generating conclusion %s", metadata.id, exc_info=True)
            return fallback_block(why_change, what_change), metadata

        self._log.info(
            "Using template: %s for category: %s", self.template_name, metadata.category
        )
        return markdown, metadata
