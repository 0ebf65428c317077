"""
repo-glossary: LLM-built glossaries for code repositories.

This package provides tools for:
- Selecting documentation and source files from a repository listing
- Batched, rate-paced term extraction with an LLM
- Merging, deduplicating and confidence-ranking the extracted terms
- Storing glossaries in DuckDB
"""

__version__ = "0.1.0"
__author__ = "yharby"

from repo_glossary.config import Settings, load_config
from repo_glossary.database import Database
from repo_glossary.errors import (
    GlossaryError,
    ImportRateLimitedError,
    RepositoryAccessError,
    RepositoryError,
    RepositoryNotFoundError,
    RepositoryRateLimitedError,
)
from repo_glossary.github import (
    GitHubClient,
    RepositoryFileProvider,
    parse_repo_url,
    require_repo,
)
from repo_glossary.models import BatchResult, ExtractedTerm, FileDescriptor, PipelineResult
from repo_glossary.pipeline import GlossaryPipeline, PipelineOptions
from repo_glossary.ratelimit import RateLimiter

__all__ = [
    # Config
    "Settings",
    "load_config",
    # Database
    "Database",
    # Errors
    "GlossaryError",
    "RepositoryError",
    "RepositoryNotFoundError",
    "RepositoryRateLimitedError",
    "RepositoryAccessError",
    "ImportRateLimitedError",
    # Providers
    "RepositoryFileProvider",
    "GitHubClient",
    "parse_repo_url",
    "require_repo",
    # Models
    "FileDescriptor",
    "ExtractedTerm",
    "BatchResult",
    "PipelineResult",
    # Pipeline
    "GlossaryPipeline",
    "PipelineOptions",
    "RateLimiter",
]
