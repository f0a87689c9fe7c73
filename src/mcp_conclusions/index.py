"""In-memory inverted index over recorded conclusions.

The markdown file remains the source of truth; the index only lives for
the lifetime of the store and is rebuilt from scratch on restart.
"""

from __future__ import annotations

import logging
from typing import Optional

MIN_TOKEN_LENGTH = 4

logger = logging.getLogger(__name__)


def tokenize(text: str, min_length: int = MIN_TOKEN_LENGTH) -> list[str]:
    """Split text into lower-cased searchable terms.

    Every character that is not a letter becomes a separator; terms shorter
    than ``min_length`` are dropped.
    """
    cleaned = "".join(ch if ch.isalpha() else " " for ch in text.lower())
    return [word for word in cleaned.split() if len(word) >= min_length]


class ConclusionIndex:
    """Maps term -> conclusion ids containing it.

    Each term keeps its ids in first-indexed order together with the number
    of times the term occurred in that conclusion's text.
    """

    def __init__(self, min_token_length: int = MIN_TOKEN_LENGTH, log: Optional[logging.Logger] = None):
        self.min_token_length = min_token_length
        self._log = log or logger
        self._terms: dict[str, dict[str, int]] = {}

    def __len__(self) -> int:
        return len(self._terms)

    def __contains__(self, term: str) -> bool:
        return term in self._terms

    def ids_for(self, term: str) -> list[str]:
        """Ids associated with a term, in the order they were indexed."""
        return list(self._terms.get(term, {}))

    def index(self, conclusion_id: str, text: str) -> int:
        """Add a conclusion's text to the index.

        Re-indexing an id adds to its counts; associations from earlier text
        are not retracted.

        Returns:
            Number of distinct terms associated with the id.
        """
        words = tokenize(text, self.min_token_length)
        distinct = 0
        for word in words:
            postings = self._terms.setdefault(word, {})
            if conclusion_id not in postings:
                postings[conclusion_id] = 0
                distinct += 1
            postings[conclusion_id] += 1

        self._log.debug("Indexed %d unique words for conclusion %s", distinct, conclusion_id)
        return distinct

    def search(self, query: str) -> list[str]:
        """Rank conclusion ids by how often they contain the query terms.

        Returns:
            Ids ordered by descending score; ties keep first-seen order.
        """
        scores: dict[str, int] = {}
        for term in tokenize(query, self.min_token_length):
            postings = self._terms.get(term)
            if not postings:
                continue
            for conclusion_id, count in postings.items():
                scores[conclusion_id] = scores.get(conclusion_id, 0) + count

        # sorted() is stable, so equal scores stay in insertion order
        return [cid for cid, _ in sorted(scores.items(), key=lambda item: -item[1])]

    def clear(self) -> None:
        self._terms.clear()
