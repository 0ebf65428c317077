"""
CLI for repo-glossary.

Provides commands for importing a repository glossary and browsing what
has been stored.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from repo_glossary.config import Settings, create_default_config, load_config
from repo_glossary.database import Database
from repo_glossary.errors import (
    ImportRateLimitedError,
    InvalidRepositoryError,
    RepositoryError,
    RepositoryNotFoundError,
    RepositoryRateLimitedError,
)
from repo_glossary.log import configure_logging
from repo_glossary.models import BatchResult, PipelineResult

app = typer.Typer(
    name="repo-glossary",
    help="Build a glossary of domain terms from a code repository.",
    add_completion=False,
)

console = Console()


def get_settings(config_path: Path | None = None) -> Settings:
    """Load settings from config file or defaults."""
    if config_path and config_path.exists():
        return load_config(config_path)
    return load_config()


def get_database(settings: Settings) -> Database:
    """Get database instance."""
    return Database(settings.paths.database_path)


def _display_config(settings: Settings, repository: str) -> None:
    """Display the configuration being used."""
    config_table = Table(show_header=False, box=None, padding=(0, 2))
    config_table.add_column("Key", style="cyan")
    config_table.add_column("Value", style="green")

    config_table.add_row("Repository", repository)
    config_table.add_row("Provider", settings.extraction.provider.value)
    config_table.add_row("Model", settings.extraction.model)
    config_table.add_row("Batch size", str(settings.extraction.batch_size))
    config_table.add_row("Batch delay", f"{settings.extraction.batch_delay:.1f}s")
    config_table.add_row("Min confidence", f"{settings.ranking.min_confidence:.2f}")
    config_table.add_row(
        "GitHub token", "configured" if settings.github.token else "[yellow]not set[/yellow]"
    )

    console.print(
        Panel(config_table, title="[bold blue]repo-glossary[/bold blue]", border_style="blue")
    )


def _print_terms(result: PipelineResult, limit: int = 20) -> None:
    table = Table(title=f"Glossary for {result.repository}")
    table.add_column("Term", style="cyan")
    table.add_column("Confidence", justify="right")
    table.add_column("Tags", style="magenta")
    table.add_column("Definition")

    for term in result.terms[:limit]:
        table.add_row(
            term.term,
            f"{term.confidence:.2f}",
            ", ".join(term.tags),
            term.definition[:80] + ("..." if len(term.definition) > 80 else ""),
        )

    if len(result.terms) > limit:
        table.add_row("...", "...", "...", "...")

    console.print(table)


@app.command("import")
def import_repo(
    repo: str = typer.Argument(..., help="owner/repo or GitHub URL"),
    name: str | None = typer.Option(None, "--name", "-n", help="Project name"),
    path: str | None = typer.Option(None, "--path", "-p", help="Only analyze this sub-directory"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Extract a glossary from a GitHub repository and store it."""
    from repo_glossary.github import GitHubClient, require_repo
    from repo_glossary.llm import create_llm_provider
    from repo_glossary.pipeline import GlossaryPipeline, PipelineOptions

    settings = get_settings(config)
    configure_logging(settings.logging, console)

    try:
        owner, repo_name = require_repo(repo)
    except InvalidRepositoryError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1) from None
    repository = f"{owner}/{repo_name}"

    if not settings.api_key:
        console.print(
            f"[red]No API key configured for provider "
            f"'{settings.extraction.provider.value}'[/red]"
        )
        raise typer.Exit(1)

    _display_config(settings, repository)

    db = get_database(settings)
    db.new_run()

    options = PipelineOptions.from_settings(settings)
    if path:
        options.analysis_path = path

    def log_to_db(level: str, message: str, context: dict) -> None:
        db.log(level=level, stage="import", message=message, repo=repository, context=context)

    def on_batch(batch: BatchResult, total: int) -> None:
        if batch.ok:
            console.print(
                f"  [green]✓[/green] Batch {batch.index + 1}/{total}: {len(batch.terms)} terms"
            )
        else:
            console.print(f"  [yellow]✗[/yellow] Batch {batch.index + 1}/{total}: {batch.error}")

    async def run_import() -> PipelineResult:
        llm = create_llm_provider(
            settings.extraction.provider.value,
            api_key=settings.api_key,
            model=settings.extraction.model,
            timeout=settings.extraction.timeout_seconds,
            max_retries=settings.extraction.max_retries,
        )
        github = GitHubClient(
            settings.github.token or None,
            base_url=settings.github.api_url,
            user_agent=settings.github.user_agent,
            timeout=settings.github.timeout_seconds,
        )
        pipeline = GlossaryPipeline(
            github,
            llm,
            options,
            log_callback=log_to_db,
            console=console,
        )
        try:
            return await pipeline.run(owner, repo_name, on_batch=on_batch)
        finally:
            await github.close()
            await llm.close()

    try:
        result = asyncio.run(run_import())
    except RepositoryNotFoundError:
        console.print(f"[red]Repository {repository} not found or is private[/red]")
        raise typer.Exit(1) from None
    except RepositoryRateLimitedError:
        console.print(
            "[red]GitHub API rate limit exceeded. Set GITHUB_TOKEN or try again later[/red]"
        )
        raise typer.Exit(1) from None
    except RepositoryError as e:
        console.print(f"[red]Failed to fetch repository {repository}: {e.message}[/red]")
        raise typer.Exit(1) from None
    except ImportRateLimitedError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1) from None

    if not result.files_analyzed:
        console.print("[yellow]No documentation files found in repository[/yellow]")
        return

    if result.is_empty:
        console.print(
            f"[yellow]No terms could be extracted from {len(result.files_analyzed)} files[/yellow]"
        )
        return

    project = db.save_result(result, name=name)
    _print_terms(result)
    console.print(
        f"\n[green]Saved {len(result.terms)} terms to project '{project.slug}' "
        f"({len(result.files_analyzed)} files analyzed)[/green]"
    )


@app.command()
def projects(
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """List imported projects."""
    settings = get_settings(config)
    db = get_database(settings)

    rows = db.get_projects()
    if not rows:
        console.print("[yellow]No projects imported yet[/yellow]")
        return

    table = Table(title="Projects")
    table.add_column("Slug", style="cyan")
    table.add_column("Repository")
    table.add_column("Files", justify="right")
    table.add_column("Terms", justify="right")
    table.add_column("Updated", style="dim")

    for project in rows:
        table.add_row(
            project.slug,
            project.repo,
            str(len(project.files_analyzed)),
            str(len(db.get_project_terms(project.id or 0))),
            str(project.updated_at)[:19],
        )

    console.print(table)


@app.command()
def terms(
    repo: str = typer.Argument(..., help="owner/repo or project slug"),
    limit: int = typer.Option(100, "--limit", "-n", help="Max terms to show"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Show the stored glossary of a project."""
    settings = get_settings(config)
    db = get_database(settings)

    project = db.get_project_by_repo(repo) or db.get_project(repo)
    if project is None:
        console.print(f"[red]Project {repo} not found[/red]")
        raise typer.Exit(1)

    stored = db.get_project_terms(project.id or 0)
    table = Table(title=f"{project.name} ({project.repo})")
    table.add_column("Term", style="cyan")
    table.add_column("Confidence", justify="right")
    table.add_column("Tags", style="magenta")
    table.add_column("Definition")

    for term in stored[:limit]:
        table.add_row(term.term, f"{term.confidence:.2f}", ", ".join(term.tags), term.definition)

    console.print(table)


@app.command()
def logs(
    repo: str | None = typer.Option(None, "--repo", "-r", help="Filter by repository"),
    level: str | None = typer.Option(None, "--level", "-l", help="Filter by level"),
    limit: int = typer.Option(50, "--limit", "-n", help="Max entries to show"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """View processing logs."""
    settings = get_settings(config)
    db = get_database(settings)

    entries = db.get_logs(level=level, repo=repo, limit=limit)
    if not entries:
        console.print("[yellow]No log entries found[/yellow]")
        return

    table = Table(title="Processing Logs")
    table.add_column("Time", style="dim")
    table.add_column("Level")
    table.add_column("Repository", style="cyan")
    table.add_column("Message")

    for entry in entries:
        level_style = {
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
        }.get(entry["level"], "white")

        table.add_row(
            str(entry["created_at"])[:19],
            f"[{level_style}]{entry['level']}[/{level_style}]",
            entry["repo"] or "",
            (entry["message"] or "")[:80],
        )

    console.print(table)


@app.command()
def init(
    output_path: Path = typer.Option(
        Path("config.yaml"),
        "--output",
        "-o",
        help="Output path for config file",
    ),
) -> None:
    """Generate a default configuration file."""
    if output_path.exists():
        overwrite = typer.confirm(f"{output_path} already exists. Overwrite?")
        if not overwrite:
            raise typer.Abort()

    create_default_config(output_path)
    console.print(f"[green]Created config file: {output_path}[/green]")
    console.print("\nSet your API keys, then run:")
    console.print("  repo-glossary import owner/repo --config config.yaml")


@app.command()
def stats(
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Show glossary statistics."""
    settings = get_settings(config)
    db = get_database(settings)

    stats_data = db.get_statistics()

    console.print(
        Panel(
            f"""
Projects: {stats_data["total_projects"]}
Terms: {stats_data["total_terms"]}
  - Average confidence: {stats_data["avg_confidence"]:.2f}
Warnings logged: {stats_data["log_warnings"]}
        """.strip(),
            title="Glossary Statistics",
        )
    )


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
