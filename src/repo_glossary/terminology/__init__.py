"""
Glossary term extraction for repo-glossary.

Provides:
- Heuristic term candidates used as prompt hints
- Batched LLM extraction with response validation
- Merging and confidence ranking across batches
"""

from repo_glossary.terminology.hints import extract_candidate_terms
from repo_glossary.terminology.llm_extractor import (
    SYSTEM_PROMPT,
    ExtractionOptions,
    build_user_prompt,
    extract_batch,
    extract_terms,
    parse_terms_response,
)
from repo_glossary.terminology.ranking import merge_and_rank, merge_batch_results

__all__ = [
    "SYSTEM_PROMPT",
    "ExtractionOptions",
    "build_user_prompt",
    "extract_batch",
    "extract_candidate_terms",
    "extract_terms",
    "merge_and_rank",
    "merge_batch_results",
    "parse_terms_response",
]
