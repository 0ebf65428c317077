"""
Heuristic term candidates.

Cheap pattern passes over raw text that surface strings which look like
terms (headings, emphasis, inline code, acronyms, CamelCase). The result is
only a hint for the extractor, never an output term on its own.
"""

from __future__ import annotations

import re

MAX_CANDIDATES = 50
MIN_CANDIDATE_LENGTH = 3
MAX_CANDIDATE_LENGTH = 50

CANDIDATE_PATTERNS = [
    # Headers (# Term, ## Term, ### Term)
    re.compile(r"^#{1,3}\s+([^#\n]+)", re.MULTILINE),
    # Bold terms (**term** or __term__)
    re.compile(r"\*\*([^*]+)\*\*"),
    re.compile(r"__([^_]+)__"),
    # Inline code (`term`)
    re.compile(r"`([^`]+)`"),
    # Acronyms (HTTP, S3API) and CamelCase identifiers
    re.compile(r"\b([A-Z][A-Z0-9]{2,}|[A-Z][a-z]*[A-Z][A-Za-z]*)\b"),
]

_WHITESPACE = re.compile(r"\s")


def _is_candidate(text: str) -> bool:
    return (
        MIN_CANDIDATE_LENGTH <= len(text) <= MAX_CANDIDATE_LENGTH
        and not _WHITESPACE.search(text)
    )


def extract_candidate_terms(text: str, limit: int = MAX_CANDIDATES) -> list[str]:
    """
    Collect term-like strings from text.

    Args:
        text: Concatenated content of a batch.
        limit: Maximum number of candidates returned.

    Returns:
        Unique candidates in first-seen order.
    """
    candidates: dict[str, None] = {}

    for pattern in CANDIDATE_PATTERNS:
        for match in pattern.finditer(text):
            term = match.group(1).strip()
            if _is_candidate(term):
                candidates.setdefault(term, None)

    return list(candidates)[:limit]
