"""Named markdown templates with ``{placeholder}`` substitution.

Custom templates should start with ``## {emoji}`` so the log recognizes the
rendered block as a conclusion; any other first line gets a timestamp
entry header prepended when saved. A template should also end with the
``<!-- metadata -->`` marker, which becomes the conclusion's id marker.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from .errors import RenderError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_NAME = "default"

# Replaced by the renderer with "<!-- metadata:<id> -->"
METADATA_MARKER = "<!-- metadata -->"

DEFAULT_TEMPLATE = """## {emoji} {category} | {impactLevel} [ID:{id}]
**Why:** {whyChange}
**What:** {whatChange}
**Files:** {affectedFilesInline}
<!-- metadata -->
"""

DETAILED_TEMPLATE = """## {emoji} {category} | {impactLevel} [ID:{id}]
**Timestamp:** {timestamp}
**Ticket:** {ticketReference}
**Tags:**
{tags}

### Why
{whyChange}

### What
{whatChange}

### Affected Files
{affectedFiles}

### Context
{context}

### Alternatives Considered
{alternatives}

### Testing
{testing}

### Related Conclusions
{relatedConclusions}
{codeSnippets}
<!-- metadata -->
"""

BUILTIN_TEMPLATES = {
    DEFAULT_TEMPLATE_NAME: DEFAULT_TEMPLATE,
    "detailed": DETAILED_TEMPLATE,
}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


@dataclass
class ConclusionTemplate:
    """A named template body."""
    name: str
    body: str

    @property
    def placeholders(self) -> list[str]:
        """Placeholder names in order of first appearance."""
        seen: dict[str, None] = {}
        for match in _PLACEHOLDER.finditer(self.body):
            seen.setdefault(match.group(1), None)
        return list(seen)


def format_value(value: Any) -> str:
    """Render one data-bag value as template text."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "\n".join(f"- {item}" for item in value)
    return str(value)


class TemplateEngine:
    """Registry of named templates.

    A ``default`` template is always registered; rendering with an unknown
    name falls back to it and never raises.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self._log = log or logger
        self._templates: dict[str, ConclusionTemplate] = {}
        for name, body in BUILTIN_TEMPLATES.items():
            self.register(name, body)

    def register(self, name: str, body: str) -> None:
        """Store or overwrite a template."""
        self._templates[name] = ConclusionTemplate(name=name, body=body)
        self._log.info("Template %s registered", name)

    def get(self, name: str) -> Optional[ConclusionTemplate]:
        return self._templates.get(name)

    def list_templates(self) -> list[str]:
        return list(self._templates)

    def resolve(self, name: str) -> ConclusionTemplate:
        """Template for ``name``, or the default one if it isn't registered."""
        template = self._templates.get(name)
        if template is None:
            self._log.warning("Template %s not found, using %s", name, DEFAULT_TEMPLATE_NAME)
            template = self._templates[DEFAULT_TEMPLATE_NAME]
        return template

    def render(self, name: str, data: dict[str, Any]) -> str:
        """Render a template against a data bag.

        Placeholders whose key is missing from ``data`` are left as-is.

        Raises:
            RenderError: If a value can't be converted to text.
        """
        template = self.resolve(name)

        def substitute(match: re.Match) -> str:
            key = match.group(1)
            if key not in data:
                return match.group(0)
            try:
                return format_value(data[key])
            except Exception as e:
                raise RenderError(f"Cannot render {{{key}}} in template {template.name}: {e}") from e

        return _PLACEHOLDER.sub(substitute, template.body)
