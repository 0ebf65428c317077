"""
Batch planning for extraction requests.
"""

from __future__ import annotations

from collections.abc import Sequence

from repo_glossary.models import FileDescriptor

TRUNCATION_MARKER = "...[truncated]"


def plan_batches(
    files: Sequence[FileDescriptor],
    batch_size: int = 20,
) -> list[list[FileDescriptor]]:
    """
    Split files into consecutive batches of at most batch_size files.

    Membership is by file count only; the last batch may be smaller.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    return [list(files[i : i + batch_size]) for i in range(0, len(files), batch_size)]


def truncate_content(content: str, max_chars: int = 3000) -> str:
    """Shorten content longer than max_chars and mark it as truncated."""
    if len(content) > max_chars:
        return content[:max_chars] + TRUNCATION_MARKER
    return content
