"""Shared fixtures: in-memory repository and LLM providers."""

from __future__ import annotations

import json
from typing import Any

import pytest

from repo_glossary.errors import RepositoryAccessError
from repo_glossary.github import RepositoryFileProvider
from repo_glossary.llm import LLMProvider, LLMResponse
from repo_glossary.models import TreeEntry


class StubLLMProvider(LLMProvider):
    """Returns queued responses in order; queued exceptions are raised."""

    def __init__(self, responses: list[Any]):
        self.responses = list(responses)
        self.calls: list[list[dict[str, str]]] = []
        self.temperatures: list[float | None] = []

    @property
    def name(self) -> str:
        return "stub"

    @property
    def model(self) -> str:
        return "stub-model"

    async def complete(self, messages, *, temperature=None, max_tokens=4096, **kwargs):
        self.calls.append(messages)
        self.temperatures.append(temperature)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return LLMResponse(content=item, model=self.model)


class StubFileProvider(RepositoryFileProvider):
    """Serves a fixed tree and file contents."""

    def __init__(
        self,
        tree: list[TreeEntry] | None = None,
        contents: dict[str, str] | None = None,
        tree_error: Exception | None = None,
        failing: set[str] | None = None,
    ):
        self.tree = tree or []
        self.contents = contents or {}
        self.tree_error = tree_error
        self.failing = failing or set()
        self.fetched: list[str] = []

    async def list_tree(self, owner: str, repo: str) -> list[TreeEntry]:
        if self.tree_error is not None:
            raise self.tree_error
        return list(self.tree)

    async def get_file_content(self, owner: str, repo: str, path: str) -> str:
        self.fetched.append(path)
        if path in self.failing:
            raise RepositoryAccessError(f"boom: {path}", owner=owner, repo=repo, path=path)
        return self.contents[path]


def terms_json(*items: tuple[str, float]) -> str:
    """JSON body for (term, confidence) pairs."""
    return json.dumps(
        [
            {"term": term, "definition": f"Definition of {term}.", "tags": ["test"], "confidence": c}
            for term, c in items
        ]
    )


class SleepRecorder:
    """Async stand-in for asyncio.sleep that records delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_llm():
    return StubLLMProvider


@pytest.fixture
def make_repo():
    return StubFileProvider


@pytest.fixture
def make_terms_json():
    return terms_json
