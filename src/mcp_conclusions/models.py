"""Data models for conclusions, thoughts, and saved-file results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class ImpactLevel(Enum):
    """Impact of a recorded change."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StoreState(Enum):
    """Lifecycle state of a ConclusionStore."""
    UNINITIALIZED = "uninitialized"
    BOUND = "bound"


class SavedFileType(Enum):
    """Kind of content a save result refers to."""
    THOUGHT = "thought"
    CONCLUSION = "conclusion"


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Format datetime as ISO 8601 with timezone."""
    return dt.isoformat(timespec='milliseconds')


def epoch_millis(dt: datetime) -> int:
    """Milliseconds since the Unix epoch."""
    return int(dt.timestamp() * 1000)


def generate_conclusion_id(millis: int) -> str:
    """Generate conclusion ID in format conclusion-<epoch millis>."""
    return f"conclusion-{millis}"


@dataclass
class CodeSnippet:
    """A before/after pair for one file."""
    file: str
    before: str = ""
    after: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CodeSnippet":
        return cls(
            file=str(data.get("file", "")),
            before=str(data.get("before", "")),
            after=str(data.get("after", "")),
        )

    def to_dict(self) -> dict:
        return {"file": self.file, "before": self.before, "after": self.after}


@dataclass
class ThoughtEntry:
    """A single reasoning step saved alongside a conclusion."""
    thought: str
    thought_number: int
    branch_id: str = "main"
    timestamp: Optional[int] = None  # epoch millis
    score: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ThoughtEntry":
        return cls(
            thought=str(data.get("thought", "")),
            thought_number=int(data.get("thoughtNumber", data.get("thought_number", 0))),
            branch_id=str(data.get("branchId", data.get("branch_id", "main"))),
            timestamp=data.get("timestamp"),
            score=data.get("score"),
        )

    def to_markdown(self) -> str:
        """Render thought as a markdown block."""
        lines = [f"## Thought {self.thought_number} ({self.branch_id})"]
        if self.score is not None:
            lines.append(f"**Score**: {self.score}")
        lines.append("")
        lines.append(self.thought)
        return "\n".join(lines)


@dataclass
class ConclusionOptions:
    """Optional fields a caller may supply when recording a conclusion.

    Every recognized option is listed here with its default; anything the
    caller leaves out resolves to these values.
    """
    category: Optional[str] = None
    sub_categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    impact_level: Optional[str] = None
    affected_files: list[str] = field(default_factory=list)
    code_snippets: list[CodeSnippet] = field(default_factory=list)
    related_conclusions: list[str] = field(default_factory=list)
    ticket_reference: Optional[str] = None
    business_context: Optional[str] = None
    technical_context: Optional[str] = None
    alternatives_considered: list[str] = field(default_factory=list)
    testing_performed: Optional[str] = None

    # Tool-facing (camelCase) argument names mapped to field names
    FIELD_ALIASES = {
        "category": "category",
        "subCategories": "sub_categories",
        "tags": "tags",
        "impactLevel": "impact_level",
        "affectedFiles": "affected_files",
        "codeSnippets": "code_snippets",
        "relatedConclusions": "related_conclusions",
        "ticketReference": "ticket_reference",
        "businessContext": "business_context",
        "technicalContext": "technical_context",
        "alternativesConsidered": "alternatives_considered",
        "testingPerformed": "testing_performed",
    }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "ConclusionOptions":
        """Build options from a tool argument dict (camelCase or snake_case keys)."""
        options = cls()
        if not data:
            return options

        for key, value in data.items():
            attr = cls.FIELD_ALIASES.get(key, key)
            if value is None or attr not in cls.__dataclass_fields__:
                continue
            if attr == "code_snippets":
                value = [
                    s if isinstance(s, CodeSnippet) else CodeSnippet.from_dict(s)
                    for s in value
                ]
            elif isinstance(getattr(options, attr), list):
                if isinstance(value, str):
                    value = [value]
                value = [str(v) for v in value]
            setattr(options, attr, value)

        return options


@dataclass
class ConclusionMetadata:
    """Canonical metadata for one recorded conclusion."""
    id: str
    timestamp: str
    category: str
    sub_categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    impact_level: ImpactLevel = ImpactLevel.MEDIUM
    affected_files: list[str] = field(default_factory=list)
    related_conclusions: list[str] = field(default_factory=list)
    ticket_reference: str = ""
    business_context: str = ""
    technical_context: str = ""
    thought_numbers: Optional[list[int]] = None

    def to_template_data(self) -> dict[str, Any]:
        """Metadata fields under the placeholder names templates use."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "category": self.category,
            "subCategories": self.sub_categories,
            "tags": self.tags,
            "impactLevel": self.impact_level.value,
            "affectedFiles": self.affected_files,
            "relatedConclusions": self.related_conclusions,
            "ticketReference": self.ticket_reference,
            "businessContext": self.business_context,
            "technicalContext": self.technical_context,
            "thoughtNumbers": self.thought_numbers,
        }

    def to_dict(self) -> dict:
        """Convert metadata to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "category": self.category,
            "sub_categories": self.sub_categories,
            "tags": self.tags,
            "impact_level": self.impact_level.value,
            "affected_files": self.affected_files,
            "related_conclusions": self.related_conclusions,
            "ticket_reference": self.ticket_reference,
            "business_context": self.business_context,
            "technical_context": self.technical_context,
            "thought_numbers": self.thought_numbers,
        }


@dataclass
class SavedFileInfo:
    """Result of one write to a data file.

    A failed write still reports the target path and type; ``error`` then
    carries the underlying message.
    """
    file_path: str
    type: SavedFileType
    timestamp: int  # epoch millis
    error: Optional[str] = None
    conclusion_id: Optional[str] = None  # set on conclusion results

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result = {
            "filePath": self.file_path,
            "type": self.type.value,
            "timestamp": self.timestamp,
        }
        if self.error is not None:
            result["error"] = self.error
        return result
