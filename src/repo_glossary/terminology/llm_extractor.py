"""
LLM-based glossary extraction.

Sends batches of repository files to an inference provider, one request at
a time with a fixed pause in between, and parses the JSON term list each
response carries. A failing batch is recorded with its reason and the run
moves on to the next one.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from repo_glossary.batching import plan_batches, truncate_content
from repo_glossary.errors import ResponseParseError
from repo_glossary.llm import LLMProvider
from repo_glossary.models import BatchResult, BatchStatus, ExtractedTerm, FileDescriptor
from repo_glossary.terminology.hints import extract_candidate_terms

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]
BatchCallback = Callable[[BatchResult, int], None]

SYSTEM_PROMPT = """You are an API that converts repository documentation into a developer glossary for onboarding.
Return ONLY valid JSON matching this schema:
[
  {
    "term": "string",
    "definition": "plain-English, 2-4 sentences, no markdown",
    "tags": ["string"],
    "confidence": 0-1
  }
]

Rules:
- Focus on domain concepts, internal acronyms, module/service names, and technical terminology
- Avoid trivial programming terms like "function" or "variable"
- Definitions must be independent and self-contained (no "as above")
- Keep each definition <= 80 words, clear and concise
- Include relevant tags for categorization
- Set confidence based on how clearly the term is defined in the documentation
- Extract 10-30 terms maximum, prioritizing the most important ones"""


@dataclass
class ExtractionOptions:
    """Knobs for one extraction run."""

    batch_size: int = 20
    max_file_chars: int = 3000
    batch_delay: float = 2.0  # seconds between requests
    max_tokens: int = 4000
    max_candidates: int = 50
    max_hints: int = 20
    temperature: float | None = None


def build_user_prompt(
    files: Sequence[FileDescriptor],
    max_file_chars: int = 3000,
    max_candidates: int = 50,
    max_hints: int = 20,
) -> str:
    """Assemble the user message for one batch."""
    parts = ["Repository documentation to analyze for technical terms:\n\n"]

    for file in files:
        content = truncate_content(file.content, max_file_chars)
        parts.append(f"## {file.path}\n\n{content}\n\n---\n\n")

    all_content = "\n".join(f.content for f in files)
    candidates = extract_candidate_terms(all_content, limit=max_candidates)
    hints = candidates[:max_hints]

    if hints:
        parts.append(f"\nPotential terms found (use as hints): {', '.join(hints)}\n\n")

    parts.append("Extract the most important technical terms from this documentation.")
    return "".join(parts)


def _strip_code_fence(content: str) -> str:
    content = content.strip()
    if content.startswith("```"):
        lines = content.split("\n")
        content = "\n".join(lines[1:-1]) if len(lines) > 2 else ""
    return content.strip()


def parse_terms_response(content: str) -> list[ExtractedTerm]:
    """
    Parse a model response into validated terms.

    The body must be a JSON array (optionally wrapped in a markdown code
    fence). Array items that fail validation are dropped one by one.

    Raises:
        ResponseParseError: If the body is empty, not JSON, or not an array.
    """
    content = _strip_code_fence(content or "")
    if not content:
        raise ResponseParseError("Empty response from model")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        # Try to extract a JSON array from surrounding prose
        json_match = re.search(r"\[.*\]", content, re.DOTALL)
        if not json_match:
            raise ResponseParseError(f"Response is not valid JSON: {e}") from e
        try:
            data = json.loads(json_match.group())
        except json.JSONDecodeError as inner:
            raise ResponseParseError(f"Response is not valid JSON: {inner}") from inner

    if not isinstance(data, list):
        raise ResponseParseError(f"Expected a JSON array, got {type(data).__name__}")

    terms: list[ExtractedTerm] = []
    for item in data:
        try:
            terms.append(ExtractedTerm.model_validate(item))
        except ValidationError as e:
            logger.debug("Dropping invalid term record %r: %s", item, e.errors()[:1])

    dropped = len(data) - len(terms)
    if dropped:
        logger.info("Dropped %d of %d term records that failed validation", dropped, len(data))
    return terms


async def extract_batch(
    index: int,
    batch: Sequence[FileDescriptor],
    provider: LLMProvider,
    options: ExtractionOptions,
) -> BatchResult:
    """
    Run a single extraction request.

    Never raises for request or parsing problems; they are reported on the
    returned BatchResult instead.
    """
    result = BatchResult(index=index, paths=[f.path for f in batch])
    user_prompt = build_user_prompt(
        batch,
        max_file_chars=options.max_file_chars,
        max_candidates=options.max_candidates,
        max_hints=options.max_hints,
    )

    try:
        result.status = BatchStatus.SENDING
        response = await provider.chat(
            system_prompt=SYSTEM_PROMPT,
            user_prompt=user_prompt,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
        )

        result.status = BatchStatus.PARSING
        result.terms = parse_terms_response(response.content)
        result.status = BatchStatus.ACCUMULATED

    except ResponseParseError as e:
        result.status = BatchStatus.FAILED
        result.error = f"parse: {e}"
        logger.warning("Failed to parse model response for batch %d: %s", index + 1, e)

    except Exception as e:
        result.status = BatchStatus.FAILED
        result.error = f"{type(e).__name__}: {e}"
        logger.error("Extraction request failed for batch %d: %s", index + 1, e)

    return result


async def extract_terms(
    files: Sequence[FileDescriptor],
    provider: LLMProvider,
    options: ExtractionOptions | None = None,
    *,
    sleep: SleepFunc = asyncio.sleep,
    on_batch: BatchCallback | None = None,
) -> list[BatchResult]:
    """
    Extract glossary terms from files, batch by batch.

    Batches are processed strictly in order. Between two batches the run
    waits options.batch_delay seconds, whether or not the previous batch
    succeeded; there is no wait after the last one.

    Args:
        files: Fetched repository files.
        provider: Inference provider.
        options: Extraction options. Defaults to ExtractionOptions().
        sleep: Awaitable pause function (replaced in tests).
        on_batch: Called with each finished BatchResult and the batch count.

    Returns:
        One BatchResult per batch, in processing order.
    """
    options = options or ExtractionOptions()
    batches = plan_batches(files, options.batch_size)
    total = len(batches)
    results: list[BatchResult] = []

    for index, batch in enumerate(batches):
        logger.info("Processing batch %d of %d (%d files)", index + 1, total, len(batch))

        result = await extract_batch(index, batch, provider, options)
        results.append(result)

        if result.ok:
            logger.info("Batch %d yielded %d terms", index + 1, len(result.terms))
        if on_batch is not None:
            on_batch(result, total)

        if index < total - 1 and options.batch_delay > 0:
            await sleep(options.batch_delay)

    return results
