"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from repo_glossary.config import (
    DEFAULT_EXCLUDE_DIRS,
    DEFAULT_INCLUDE_EXTENSIONS,
    LLMProvider,
    Settings,
    create_default_config,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("ANTHROPIC_API_KEY", "CLAUDE_KEY", "OPENROUTER_API_KEY", "GITHUB_TOKEN"):
        monkeypatch.delenv(var, raising=False)


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.extraction.provider == LLMProvider.ANTHROPIC
        assert settings.extraction.batch_size == 20
        assert settings.extraction.max_file_chars == 3000
        assert settings.extraction.batch_delay == 2.0
        assert settings.extraction.max_tokens == 4000
        assert settings.ranking.min_confidence == 0.3
        assert settings.ranking.max_terms == 100
        assert settings.rate_limit.requests == 5
        assert settings.rate_limit.window_seconds == 900
        assert settings.selection.include_extensions == DEFAULT_INCLUDE_EXTENSIONS
        assert settings.selection.exclude_dirs == DEFAULT_EXCLUDE_DIRS
        assert settings.api_key == ""

    def test_api_key_env_fallbacks(self, monkeypatch):
        monkeypatch.setenv("CLAUDE_KEY", "claude-key")
        monkeypatch.setenv("OPENROUTER_API_KEY", "or-key")
        monkeypatch.setenv("GITHUB_TOKEN", "gh-token")

        settings = Settings()
        assert settings.api_key == "claude-key"
        assert settings.github.token == "gh-token"

        settings = Settings(extraction={"provider": "openrouter"})
        assert settings.api_key == "or-key"

    def test_extensions_normalized(self):
        settings = Settings(selection={"include_extensions": ["MD", ".PY", "ts"]})
        assert settings.selection.include_extensions == [".md", ".py", ".ts"]

    def test_batch_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(extraction={"batch_size": 0})


class TestLoadConfig:
    def test_yaml_with_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MY_KEY", "from-env")
        path = tmp_path / "config.yaml"
        path.write_text(
            "extraction:\n"
            "  anthropic_api_key: ${MY_KEY}\n"
            "  batch_size: 5\n"
            "selection:\n"
            "  analysis_path: docs\n",
            encoding="utf-8",
        )

        settings = load_config(path)

        assert settings.extraction.anthropic_api_key == "from-env"
        assert settings.extraction.batch_size == 5
        assert settings.selection.analysis_path == "docs"

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_config(tmp_path / "absent.yaml")
        assert settings.extraction.batch_size == 20

    def test_default_config_round_trips(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
        path = create_default_config(tmp_path / "nested" / "config.yaml")

        assert path.exists()
        settings = load_config(path)
        assert settings.extraction.anthropic_api_key == "sk-ant"
        assert settings.selection.include_extensions == DEFAULT_INCLUDE_EXTENSIONS
        assert settings.selection.exclude_dirs == DEFAULT_EXCLUDE_DIRS
