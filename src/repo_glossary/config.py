"""
Configuration management for repo-glossary.

Handles loading configuration from YAML files and environment variables.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if present (before Settings initialization)
load_dotenv()

DEFAULT_INCLUDE_EXTENSIONS = [
    ".js",
    ".ts",
    ".tsx",
    ".py",
    ".go",
    ".java",
    ".rb",
    ".php",
    ".c",
    ".cpp",
    ".h",
    ".cs",
    ".html",
    ".css",
    ".scss",
    ".less",
    ".sh",
    ".md",
    ".txt",
]

DEFAULT_EXCLUDE_DIRS = [
    "node_modules",
    ".git",
    "dist",
    "build",
    "coverage",
    "test",
    "tests",
    "__tests__",
    "vendor",
    "public",
]


class LLMProvider(str, Enum):
    """Available inference backends."""

    ANTHROPIC = "anthropic"
    OPENROUTER = "openrouter"


class PathsConfig(BaseModel):
    """Configuration for file paths."""

    database_path: Path = Field(default=Path("./repo_glossary.duckdb"))
    logs: Path = Field(default=Path("./logs"))

    @field_validator("database_path", "logs")
    @classmethod
    def expand_path(cls, v: Path) -> Path:
        """Expand user home directory and make path absolute."""
        return Path(v).expanduser().resolve()


class GitHubConfig(BaseModel):
    """Configuration for the GitHub file provider."""

    token: str = Field(default="")
    api_url: str = Field(default="https://api.github.com")
    user_agent: str = Field(default="repo-glossary/0.1")
    timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)


class SelectionConfig(BaseModel):
    """Which repository files are candidates for extraction."""

    include_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_INCLUDE_EXTENSIONS))
    exclude_dirs: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    analysis_path: str | None = Field(default=None)

    @field_validator("include_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Lowercase extensions and make sure they start with a dot."""
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v]


class ExtractionConfig(BaseModel):
    """Configuration for batched LLM term extraction."""

    provider: LLMProvider = Field(default=LLMProvider.ANTHROPIC)
    model: str = Field(default="claude-3-5-sonnet-latest")
    # Anthropic API key (only required if provider is "anthropic")
    anthropic_api_key: str = Field(default="")
    # OpenRouter API key (only required if provider is "openrouter")
    openrouter_api_key: str = Field(default="")
    max_tokens: int = Field(default=4000, ge=256, le=32000)
    # Omitted from requests when unset
    temperature: float | None = Field(default=None, ge=0.0, le=1.0)
    batch_size: int = Field(default=20, ge=1, le=200)
    max_file_chars: int = Field(default=3000, ge=100, le=200_000)
    batch_delay: float = Field(default=2.0, ge=0.0, le=120.0)
    max_candidates: int = Field(default=50, ge=0, le=500)
    max_hints: int = Field(default=20, ge=0, le=500)
    timeout_seconds: float = Field(default=120.0, ge=5.0, le=600.0)
    max_retries: int = Field(default=1, ge=1, le=10)


class RankingConfig(BaseModel):
    """Configuration for merging and ranking extracted terms."""

    min_confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    max_terms: int = Field(default=100, ge=1, le=5000)


class RateLimitConfig(BaseModel):
    """Per-caller allowance of pipeline runs."""

    requests: int = Field(default=5, ge=1, le=1000)
    window_seconds: float = Field(default=15 * 60, ge=1.0)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO")
    file: Path | None = Field(default=Path("./logs/repo_glossary.log"))
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    max_file_size_mb: int = Field(default=10, ge=1, le=100)
    backup_count: int = Field(default=5, ge=1, le=20)


class Settings(BaseSettings):
    """Main settings class that combines all configurations."""

    model_config = SettingsConfigDict(
        env_prefix="",  # No prefix for simpler env vars
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Configuration sections
    paths: PathsConfig = Field(default_factory=PathsConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def __init__(self, **data: Any) -> None:
        """Initialize with environment variable fallbacks for API keys."""
        super().__init__(**data)
        # Override API keys from environment if not set in config
        if not self.extraction.anthropic_api_key:
            self.extraction.anthropic_api_key = os.getenv(
                "ANTHROPIC_API_KEY", os.getenv("CLAUDE_KEY", "")
            )
        if not self.extraction.openrouter_api_key:
            self.extraction.openrouter_api_key = os.getenv("OPENROUTER_API_KEY", "")
        if not self.github.token:
            self.github.token = os.getenv("GITHUB_TOKEN", "")

    @property
    def api_key(self) -> str:
        """API key for the configured extraction provider."""
        if self.extraction.provider == LLMProvider.OPENROUTER:
            return self.extraction.openrouter_api_key
        return self.extraction.anthropic_api_key

    @classmethod
    def from_yaml(cls, path: Path | str) -> Settings:
        """Load settings from a YAML file, with environment variable overrides."""
        path = Path(path)
        if not path.exists():
            # Return defaults if file doesn't exist
            return cls()

        with open(path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        # Process environment variable substitutions in YAML values
        yaml_config = _substitute_env_vars(yaml_config)

        return cls(**yaml_config)


def _substitute_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively substitute ${ENV_VAR} patterns in config values."""
    result = {}
    for key, value in config.items():
        if isinstance(value, dict):
            result[key] = _substitute_env_vars(value)
        elif isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            env_var = value[2:-1]
            result[key] = os.getenv(env_var, "")
        elif isinstance(value, list):
            result[key] = [
                _substitute_env_vars(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            result[key] = value
    return result


def load_config(path: Path | str | None = None) -> Settings:
    """
    Load configuration from YAML file or return defaults.

    Args:
        path: Path to YAML config file. If None, looks for config.yaml in current directory.

    Returns:
        Settings instance with merged YAML and environment configurations.
    """
    if path is None:
        default_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(".repo-glossary.yaml"),
        ]
        for p in default_paths:
            if p.exists():
                path = p
                break

    if path is not None:
        return Settings.from_yaml(path)

    return Settings()


DEFAULT_CONFIG = """# repo-glossary configuration

paths:
  database_path: ./repo_glossary.duckdb
  logs: ./logs

github:
  # Optional; raises the API rate limit and allows private repositories
  token: ${GITHUB_TOKEN}
  api_url: https://api.github.com
  timeout_seconds: 30

selection:
  # Only files with these extensions are analyzed
  include_extensions: [.js, .ts, .tsx, .py, .go, .java, .rb, .php, .c, .cpp, .h, .cs,
                       .html, .css, .scss, .less, .sh, .md, .txt]
  # Files under any of these directories are skipped, at any depth
  exclude_dirs: [node_modules, .git, dist, build, coverage, test, tests, __tests__,
                 vendor, public]

extraction:
  # "anthropic" (Messages API) or "openrouter"
  provider: anthropic
  model: claude-3-5-sonnet-latest
  anthropic_api_key: ${ANTHROPIC_API_KEY}
  # openrouter_api_key: ${OPENROUTER_API_KEY}
  max_tokens: 4000
  # Sampling temperature; left to the provider default when unset
  # temperature: 0.2
  # Files per request
  batch_size: 20
  # Longer files are truncated before being sent
  max_file_chars: 3000
  # Seconds to wait between requests
  batch_delay: 2.0

ranking:
  min_confidence: 0.3
  max_terms: 100

rate_limit:
  requests: 5
  window_seconds: 900

logging:
  level: INFO
  file: ./logs/repo_glossary.log
"""


def create_default_config(path: Path | str = "config.yaml") -> Path:
    """Create a default configuration file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(DEFAULT_CONFIG)
    return path
