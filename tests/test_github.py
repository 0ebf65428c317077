"""Tests for the GitHub file provider and repository identifier parsing."""

import asyncio
import base64

import httpx
import pytest

from repo_glossary.errors import (
    InvalidRepositoryError,
    RepositoryAccessError,
    RepositoryError,
    RepositoryNotFoundError,
    RepositoryRateLimitedError,
)
from repo_glossary.github import GitHubClient, parse_repo_url, require_repo
from repo_glossary.models import TreeEntry


def make_client(handler) -> GitHubClient:
    return GitHubClient("secret", transport=httpx.MockTransport(handler))


def run(coro):
    return asyncio.run(coro)


class TestParseRepoUrl:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("acme/books", ("acme", "books")),
            ("  acme/books  ", ("acme", "books")),
            ("https://github.com/acme/books", ("acme", "books")),
            ("http://github.com/acme/books/tree/main/docs", ("acme", "books")),
            ("github.com/acme/books.git", ("acme", "books")),
            ("https://github.com/acme/books.git", ("acme", "books")),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_repo_url(value) == expected

    @pytest.mark.parametrize("value", ["", "books", "https://gitlab.com/acme/books", "a b/c"])
    def test_invalid(self, value):
        assert parse_repo_url(value) is None

    def test_require_repo(self):
        assert require_repo("https://github.com/acme/books") == ("acme", "books")
        with pytest.raises(InvalidRepositoryError) as exc_info:
            require_repo("books")
        assert exc_info.value.details == {"value": "books"}
        assert isinstance(exc_info.value, ValueError)


class TestListTree:
    def test_lists_default_branch(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.path == "/repos/acme/books":
                return httpx.Response(200, json={"default_branch": "trunk"})
            if request.url.path == "/repos/acme/books/git/trees/trunk":
                return httpx.Response(
                    200,
                    json={
                        "tree": [
                            {"path": "README.md", "type": "blob"},
                            {"path": "docs", "type": "tree"},
                            {"path": "docs/a.md", "type": "blob"},
                            {"path": "vendored", "type": "commit"},
                        ],
                        "truncated": False,
                    },
                )
            return httpx.Response(404)

        entries = run(make_client(handler).list_tree("acme", "books"))

        assert entries == [
            TreeEntry(path="README.md", type="file"),
            TreeEntry(path="docs", type="dir"),
            TreeEntry(path="docs/a.md", type="file"),
        ]
        assert requests[1].url.params["recursive"] == "1"
        assert requests[0].headers["Authorization"] == "token secret"
        assert requests[0].headers["User-Agent"].startswith("repo-glossary")

    def test_branch_name_is_url_encoded(self):
        seen = []

        def handler(request):
            seen.append(request.url.raw_path)
            if request.url.path == "/repos/acme/books":
                return httpx.Response(200, json={"default_branch": "release/1.0#rc"})
            return httpx.Response(200, json={"tree": [{"path": "README.md", "type": "blob"}]})

        entries = run(make_client(handler).list_tree("acme", "books"))

        assert entries == [TreeEntry(path="README.md")]
        assert seen[1].startswith(b"/repos/acme/books/git/trees/release%2F1.0%23rc")

    def test_not_found(self):
        client = make_client(lambda request: httpx.Response(404, json={"message": "Not Found"}))
        with pytest.raises(RepositoryNotFoundError) as exc_info:
            run(client.list_tree("acme", "private"))
        assert exc_info.value.status_code == 404
        assert exc_info.value.details["repository"] == "acme/private"

    def test_rate_limited_403(self):
        client = make_client(
            lambda request: httpx.Response(
                403, headers={"x-ratelimit-remaining": "0", "retry-after": "30"}
            )
        )
        with pytest.raises(RepositoryRateLimitedError) as exc_info:
            run(client.list_tree("acme", "books"))
        assert exc_info.value.retry_after == 30.0

    def test_rate_limited_429(self):
        client = make_client(lambda request: httpx.Response(429))
        with pytest.raises(RepositoryRateLimitedError):
            run(client.list_tree("acme", "books"))

    def test_forbidden_without_rate_limit_is_generic(self):
        client = make_client(lambda request: httpx.Response(403))
        with pytest.raises(RepositoryAccessError):
            run(client.list_tree("acme", "books"))

    def test_server_error(self):
        client = make_client(lambda request: httpx.Response(502))
        with pytest.raises(RepositoryAccessError) as exc_info:
            run(client.list_tree("acme", "books"))
        assert exc_info.value.status_code == 502

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RepositoryAccessError):
            run(make_client(handler).list_tree("acme", "books"))


class TestGetFileContent:
    def test_decodes_base64(self):
        encoded = base64.b64encode("Héllo **Ledger**\n".encode()).decode()
        # GitHub wraps base64 at 60 columns
        wrapped = "\n".join(encoded[i : i + 8] for i in range(0, len(encoded), 8))

        def handler(request):
            assert request.url.path == "/repos/acme/books/contents/docs/a.md"
            return httpx.Response(200, json={"type": "file", "content": wrapped})

        assert run(make_client(handler).get_file_content("acme", "books", "docs/a.md")) == (
            "Héllo **Ledger**\n"
        )

    def test_path_is_url_encoded(self):
        seen = []
        encoded = base64.b64encode(b"namespace Ledger {}").decode()

        def handler(request):
            seen.append(request.url.raw_path)
            return httpx.Response(200, json={"type": "file", "content": encoded})

        content = run(make_client(handler).get_file_content("acme", "books", "docs/C#-guide?.md"))

        assert content == "namespace Ledger {}"
        assert seen == [b"/repos/acme/books/contents/docs/C%23-guide%3F.md"]

    def test_directory_is_an_error(self):
        client = make_client(lambda request: httpx.Response(200, json=[{"type": "file"}]))
        with pytest.raises(RepositoryError):
            run(client.get_file_content("acme", "books", "docs"))

    def test_binary_content_fails_to_decode(self):
        encoded = base64.b64encode(b"\xff\xfe\x00binary").decode()
        client = make_client(
            lambda request: httpx.Response(200, json={"type": "file", "content": encoded})
        )
        with pytest.raises(UnicodeDecodeError):
            run(client.get_file_content("acme", "books", "blob.txt"))
