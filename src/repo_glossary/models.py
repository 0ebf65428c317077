"""
Data model shared by the glossary pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class TreeEntry:
    """One row of a recursive repository listing."""

    path: str
    type: Literal["file", "dir"] = "file"


@dataclass(frozen=True)
class FileDescriptor:
    """A selected file with its decoded text content."""

    path: str
    content: str


class ExtractedTerm(BaseModel):
    """A glossary term returned by the inference endpoint."""

    # No coercion: "0.9" or true are not confidences
    model_config = ConfigDict(strict=True)

    term: str = Field(min_length=1)
    definition: str
    tags: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)


class BatchStatus(str, Enum):
    """Per-batch extraction state."""

    PENDING = "pending"
    SENDING = "sending"
    PARSING = "parsing"
    ACCUMULATED = "accumulated"
    FAILED = "failed"


@dataclass
class BatchResult:
    """Outcome of one extraction request."""

    index: int
    paths: list[str]
    status: BatchStatus = BatchStatus.PENDING
    terms: list[ExtractedTerm] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == BatchStatus.ACCUMULATED


@dataclass
class PipelineResult:
    """Final ranked glossary for one repository."""

    repository: str
    files_analyzed: list[str] = field(default_factory=list)
    terms: list[ExtractedTerm] = field(default_factory=list)
    batches: list[BatchResult] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when the run succeeded but produced no terms."""
        return not self.terms

    @property
    def failed_batches(self) -> list[BatchResult]:
        return [b for b in self.batches if not b.ok]
