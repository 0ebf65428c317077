"""
Glossary import pipeline.

Runs one repository through selection, fetching, batched extraction and
ranking:

    list tree -> select -> fetch -> extract (per batch) -> merge & rank -> sink

Only a failed tree listing (or an exhausted caller allowance) aborts a run.
Everything downstream degrades: unreadable files are skipped, failed
batches contribute no terms.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from rich.console import Console

from repo_glossary.config import DEFAULT_EXCLUDE_DIRS, DEFAULT_INCLUDE_EXTENSIONS, Settings
from repo_glossary.errors import ImportRateLimitedError, RepositoryError
from repo_glossary.github import RepositoryFileProvider
from repo_glossary.llm import LLMProvider
from repo_glossary.models import BatchResult, PipelineResult
from repo_glossary.ratelimit import RateLimiter
from repo_glossary.scanner import fetch_file_contents, select_candidate_files
from repo_glossary.terminology.llm_extractor import (
    BatchCallback,
    ExtractionOptions,
    SleepFunc,
    extract_terms,
)
from repo_glossary.terminology.ranking import merge_batch_results

logger = logging.getLogger(__name__)

# (level, message, context) -> None, e.g. Database.log bound to a stage
LogCallback = Callable[[str, str, dict[str, Any]], None]


class TermSink(Protocol):
    """Destination for finished glossaries."""

    def save_result(self, result: PipelineResult) -> Any: ...


@dataclass
class PipelineOptions:
    """Configuration for one pipeline run."""

    include_extensions: Sequence[str] = field(
        default_factory=lambda: list(DEFAULT_INCLUDE_EXTENSIONS)
    )
    exclude_dirs: Sequence[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    analysis_path: str | None = None
    extraction: ExtractionOptions = field(default_factory=ExtractionOptions)
    min_confidence: float = 0.3
    max_terms: int = 100

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineOptions:
        return cls(
            include_extensions=list(settings.selection.include_extensions),
            exclude_dirs=list(settings.selection.exclude_dirs),
            analysis_path=settings.selection.analysis_path,
            extraction=ExtractionOptions(
                batch_size=settings.extraction.batch_size,
                max_file_chars=settings.extraction.max_file_chars,
                batch_delay=settings.extraction.batch_delay,
                max_tokens=settings.extraction.max_tokens,
                max_candidates=settings.extraction.max_candidates,
                max_hints=settings.extraction.max_hints,
                temperature=settings.extraction.temperature,
            ),
            min_confidence=settings.ranking.min_confidence,
            max_terms=settings.ranking.max_terms,
        )


class GlossaryPipeline:
    """Builds a ranked glossary for a repository."""

    def __init__(
        self,
        file_provider: RepositoryFileProvider,
        llm_provider: LLMProvider,
        options: PipelineOptions | None = None,
        *,
        sink: TermSink | None = None,
        rate_limiter: RateLimiter | None = None,
        sleep: SleepFunc = asyncio.sleep,
        log_callback: LogCallback | None = None,
        console: Console | None = None,
    ):
        """
        Initialize pipeline.

        Args:
            file_provider: Source of the repository listing and file contents.
            llm_provider: Inference provider used for extraction.
            options: Run options. Defaults to PipelineOptions().
            sink: Receives non-empty results.
            rate_limiter: Per-caller allowance checked before each run.
            sleep: Pause function used between batches.
            log_callback: Receives run events as (level, message, context).
            console: Rich console for progress output.
        """
        self.file_provider = file_provider
        self.llm_provider = llm_provider
        self.options = options or PipelineOptions()
        self.sink = sink
        self.rate_limiter = rate_limiter
        self._sleep = sleep
        self._log_callback = log_callback
        self._console = console

    def _log(self, level: str, message: str, context: dict[str, Any] | None = None) -> None:
        logger.log(logging.getLevelName(level), message)
        if self._log_callback:
            self._log_callback(level, message, context or {})

    async def run(
        self,
        owner: str,
        repo: str,
        *,
        caller_id: str | None = None,
        on_batch: BatchCallback | None = None,
    ) -> PipelineResult:
        """
        Import one repository.

        Args:
            owner: Repository owner.
            repo: Repository name.
            caller_id: Identity charged against the rate limiter.
            on_batch: Called after each extraction batch.

        Returns:
            PipelineResult; an empty term list is a valid outcome.

        Raises:
            ImportRateLimitedError: If caller_id has no allowance left.
            RepositoryError: If the repository listing cannot be obtained.
        """
        repository = f"{owner}/{repo}"

        if self.rate_limiter is not None and caller_id is not None:
            if not self.rate_limiter.check(caller_id):
                raise ImportRateLimitedError(caller_id, self.rate_limiter.retry_after(caller_id))

        self._log("INFO", f"Fetching file tree for {repository}")
        try:
            entries = await self.file_provider.list_tree(owner, repo)
        except RepositoryError as e:
            self._log(
                "ERROR",
                f"Could not list {repository}: {e.message}",
                {"error_type": type(e).__name__, **e.details},
            )
            raise

        paths = select_candidate_files(
            entries,
            include_extensions=self.options.include_extensions,
            exclude_dirs=self.options.exclude_dirs,
            analysis_path=self.options.analysis_path,
        )
        self._log(
            "INFO",
            f"Selected {len(paths)} of {len(entries)} entries",
            {"selected": len(paths), "listed": len(entries)},
        )

        files = await fetch_file_contents(
            self.file_provider, owner, repo, paths, console=self._console
        )
        skipped = len(paths) - len(files)
        if skipped:
            self._log("WARNING", f"Skipped {skipped} files that could not be fetched")

        batches = await extract_terms(
            files,
            self.llm_provider,
            self.options.extraction,
            sleep=self._sleep,
            on_batch=on_batch,
        )
        self._report_failures(batches)

        terms = merge_batch_results(
            batches,
            min_confidence=self.options.min_confidence,
            max_terms=self.options.max_terms,
        )
        result = PipelineResult(
            repository=repository,
            files_analyzed=[f.path for f in files],
            terms=terms,
            batches=batches,
        )

        self._log(
            "INFO",
            f"Extracted {len(terms)} terms from {len(files)} files",
            {
                "model": self.llm_provider.model,
                "provider": self.llm_provider.name,
                "batches": len(batches),
                "failed_batches": len(result.failed_batches),
                "terms": len(terms),
            },
        )

        if self.sink is not None and not result.is_empty:
            self.sink.save_result(result)

        return result

    def _report_failures(self, batches: Sequence[BatchResult]) -> None:
        for batch in batches:
            if not batch.ok:
                self._log(
                    "WARNING",
                    f"Batch {batch.index + 1} contributed no terms: {batch.error}",
                    {"batch": batch.index + 1, "paths": batch.paths[:5], "error": batch.error},
                )
