"""
Candidate file selection and content fetching.

Picks the documentation and source files worth sending to the extractor
from a repository listing, then downloads their text.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from repo_glossary.config import DEFAULT_EXCLUDE_DIRS, DEFAULT_INCLUDE_EXTENSIONS
from repo_glossary.github import RepositoryFileProvider
from repo_glossary.models import FileDescriptor, TreeEntry

logger = logging.getLogger(__name__)


def has_included_extension(path: str, include_extensions: Iterable[str]) -> bool:
    """Check if a path ends with one of the allowed extensions (case-insensitive)."""
    lowered = path.lower()
    return any(lowered.endswith(ext.lower()) for ext in include_extensions)


def is_excluded_path(path: str, exclude_dirs: Iterable[str]) -> bool:
    """Check if any directory of the path is deny-listed, at the root or nested."""
    return any(path.startswith(f"{d}/") or f"/{d}/" in path for d in exclude_dirs)


def is_under_path(path: str, analysis_path: str | None) -> bool:
    """Check if a path lies inside the analysis sub-directory."""
    if not analysis_path:
        return True
    prefix = analysis_path.strip("/")
    if not prefix:
        return True
    return path == prefix or path.startswith(f"{prefix}/")


def select_candidate_files(
    entries: Iterable[TreeEntry],
    include_extensions: Sequence[str] = DEFAULT_INCLUDE_EXTENSIONS,
    exclude_dirs: Sequence[str] = DEFAULT_EXCLUDE_DIRS,
    analysis_path: str | None = None,
) -> list[str]:
    """
    Filter a repository listing down to the files to analyze.

    Args:
        entries: Recursive listing of the repository.
        include_extensions: Allowed file extensions.
        exclude_dirs: Directory names skipped at any depth.
        analysis_path: Optional sub-directory to restrict selection to.

    Returns:
        Selected paths, in listing order.
    """
    return [
        entry.path
        for entry in entries
        if entry.type == "file"
        and has_included_extension(entry.path, include_extensions)
        and not is_excluded_path(entry.path, exclude_dirs)
        and is_under_path(entry.path, analysis_path)
    ]


async def fetch_file_contents(
    provider: RepositoryFileProvider,
    owner: str,
    repo: str,
    paths: Sequence[str],
    console: Console | None = None,
) -> list[FileDescriptor]:
    """
    Download the text of each selected file.

    Files that fail to download or decode are logged and left out; the
    remaining files keep their relative order. No retries.

    Args:
        provider: Repository file provider.
        owner: Repository owner.
        repo: Repository name.
        paths: Paths returned by select_candidate_files.
        console: Rich console for a progress bar. If None, no progress is shown.

    Returns:
        FileDescriptor for every file that was fetched.
    """
    files: list[FileDescriptor] = []

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        disable=console is None,
        transient=True,
    ) as progress:
        task = progress.add_task(f"Fetching {owner}/{repo}", total=len(paths))

        for path in paths:
            progress.update(task, description=f"Fetching {path}")
            try:
                content = await provider.get_file_content(owner, repo, path)
            except Exception as e:
                logger.warning("Failed to fetch content for %s: %s", path, e)
            else:
                files.append(FileDescriptor(path=path, content=content))
            progress.advance(task)

    logger.info("Fetched %d of %d selected files", len(files), len(paths))
    return files
