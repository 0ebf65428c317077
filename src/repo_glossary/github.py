"""
Repository file providers.

Defines the interface the pipeline uses to list and read repository files,
and a GitHub REST implementation built on httpx.
"""

from __future__ import annotations

import base64
import logging
import re
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import quote

import httpx

from repo_glossary.errors import (
    InvalidRepositoryError,
    RepositoryAccessError,
    RepositoryError,
    RepositoryNotFoundError,
    RepositoryRateLimitedError,
)
from repo_glossary.models import TreeEntry

logger = logging.getLogger(__name__)

# GitHub tree object types mapped onto TreeEntry types
_TREE_TYPES = {"blob": "file", "tree": "dir", "file": "file", "dir": "dir"}

_REPO_PATTERNS = [
    # https://github.com/owner/repo
    re.compile(r"^https?://github\.com/([^/]+)/([^/]+)(?:/.*)?$"),
    # github.com/owner/repo
    re.compile(r"^github\.com/([^/]+)/([^/]+)(?:/.*)?$"),
    # owner/repo
    re.compile(r"^([^/\s]+)/([^/\s]+)$"),
]


def parse_repo_url(value: str) -> tuple[str, str] | None:
    """
    Parse a repository identifier into (owner, repo).

    Accepts ``owner/repo``, ``github.com/owner/repo`` and full GitHub URLs.
    A trailing ``.git`` is removed. Returns None if nothing matches.
    """
    text = value.strip()
    for pattern in _REPO_PATTERNS:
        match = pattern.match(text)
        if match:
            owner, repo = match.group(1), match.group(2)
            repo = re.sub(r"\.git$", "", repo)
            if owner and repo:
                return owner, repo
    return None


def require_repo(value: str) -> tuple[str, str]:
    """Like parse_repo_url, but raises InvalidRepositoryError instead of returning None."""
    parsed = parse_repo_url(value)
    if parsed is None:
        raise InvalidRepositoryError(value)
    return parsed


class RepositoryFileProvider(ABC):
    """
    Abstract source of repository files.

    Implementations must raise RepositoryNotFoundError, RepositoryRateLimitedError
    or RepositoryAccessError so callers can tell the failure modes apart.
    """

    @abstractmethod
    async def list_tree(self, owner: str, repo: str) -> list[TreeEntry]:
        """Recursive listing of the repository's default branch."""
        ...

    @abstractmethod
    async def get_file_content(self, owner: str, repo: str, path: str) -> str:
        """Decoded text content of a single file."""
        ...


class GitHubClient(RepositoryFileProvider):
    """GitHub REST API file provider."""

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str = "https://api.github.com",
        user_agent: str = "repo-glossary/0.1",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize GitHub client.

        Args:
            token: Personal access token. Optional for public repositories.
            base_url: API base URL.
            user_agent: User-Agent header; GitHub rejects requests without one.
            timeout: Request timeout in seconds.
            transport: Custom httpx transport (used by tests).
        """
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": user_agent,
        }
        if token:
            headers["Authorization"] = f"token {token}"

        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    async def _get_json(
        self,
        url: str,
        owner: str,
        repo: str,
        path: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            raise RepositoryAccessError(
                f"GitHub request failed: {e}", owner=owner, repo=repo, path=path
            ) from e

        if response.is_success:
            return response.json()

        status = response.status_code
        reason = f"GitHub API error: {status} {response.reason_phrase}"

        if status == 404:
            raise RepositoryNotFoundError(
                f"Repository or path not found (it may be private): {owner}/{repo}"
                + (f"/{path}" if path else ""),
                owner=owner,
                repo=repo,
                path=path,
                status_code=status,
            )

        if status == 429 or (
            status == 403 and response.headers.get("x-ratelimit-remaining") == "0"
        ):
            raise RepositoryRateLimitedError(
                "GitHub API rate limit exceeded",
                retry_after=_retry_after(response),
                owner=owner,
                repo=repo,
                path=path,
                status_code=status,
            )

        raise RepositoryAccessError(reason, owner=owner, repo=repo, path=path, status_code=status)

    async def get_default_branch(self, owner: str, repo: str) -> str:
        data = await self._get_json(f"/repos/{owner}/{repo}", owner, repo)
        return data.get("default_branch") or "main"

    async def list_tree(self, owner: str, repo: str) -> list[TreeEntry]:
        """List every entry on the default branch via the recursive trees API."""
        branch = await self.get_default_branch(owner, repo)
        data = await self._get_json(
            f"/repos/{owner}/{repo}/git/trees/{quote(branch, safe='')}",
            owner,
            repo,
            params={"recursive": "1"},
        )

        if data.get("truncated"):
            logger.warning("Tree listing for %s/%s was truncated by GitHub", owner, repo)

        entries: list[TreeEntry] = []
        for item in data.get("tree", []):
            entry_type = _TREE_TYPES.get(item.get("type", ""))
            path = item.get("path")
            if entry_type is None or not path:
                # Submodules ("commit") and malformed rows
                continue
            entries.append(TreeEntry(path=path, type=entry_type))

        logger.debug("Listed %d entries for %s/%s@%s", len(entries), owner, repo, branch)
        return entries

    async def get_file_content(self, owner: str, repo: str, path: str) -> str:
        """Fetch a file through the contents API and decode it as UTF-8."""
        data = await self._get_json(
            f"/repos/{owner}/{repo}/contents/{quote(path, safe='/')}", owner, repo, path
        )

        if not isinstance(data, dict) or data.get("type") != "file" or not data.get("content"):
            raise RepositoryError(
                f"File not found or is not a regular file: {path}",
                owner=owner,
                repo=repo,
                path=path,
            )

        raw = base64.b64decode(data["content"])
        return raw.decode("utf-8")


def _retry_after(response: httpx.Response) -> float | None:
    """Seconds until the rate limit resets, if GitHub said so."""
    retry_after = response.headers.get("retry-after")
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:
            pass
    return None
