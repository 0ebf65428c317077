"""
Merging and ranking of extracted terms.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from repo_glossary.models import BatchResult, ExtractedTerm

DEFAULT_MIN_CONFIDENCE = 0.3
DEFAULT_MAX_TERMS = 100


def merge_and_rank(
    term_lists: Iterable[Sequence[ExtractedTerm]],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    max_terms: int = DEFAULT_MAX_TERMS,
) -> list[ExtractedTerm]:
    """
    Combine per-batch term lists into the final glossary.

    Terms below min_confidence are dropped. For each case-insensitive
    spelling the first occurrence wins, even when a later duplicate has a
    higher confidence. The survivors are sorted by confidence, highest
    first (ties keep their order), and cut to max_terms.
    """
    seen: set[str] = set()
    merged: list[ExtractedTerm] = []

    for terms in term_lists:
        for term in terms:
            if term.confidence < min_confidence:
                continue
            key = term.term.lower()
            if key in seen:
                continue
            seen.add(key)
            merged.append(term)

    merged.sort(key=lambda t: t.confidence, reverse=True)
    return merged[:max_terms]


def merge_batch_results(
    results: Iterable[BatchResult],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    max_terms: int = DEFAULT_MAX_TERMS,
) -> list[ExtractedTerm]:
    """merge_and_rank over the terms of BatchResults; failed batches add nothing."""
    return merge_and_rank(
        (r.terms for r in results if r.ok),
        min_confidence=min_confidence,
        max_terms=max_terms,
    )
