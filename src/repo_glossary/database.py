"""
DuckDB storage for repo-glossary.

Persists imported glossaries (projects and their terms) and the processing
log. Serves as the default term sink of the pipeline.
"""

from __future__ import annotations

import json
import re
import unicodedata
import uuid
from collections.abc import Generator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import duckdb

from repo_glossary.errors import GlossaryError
from repo_glossary.models import ExtractedTerm, PipelineResult


def slugify(text: str) -> str:
    """URL-friendly slug: lowercase ASCII words joined by hyphens."""
    normalized = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug or "untitled"


@dataclass
class Project:
    """Imported repository glossary."""

    id: int | None = None
    name: str = ""
    slug: str = ""
    repo: str = ""
    files_analyzed: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class GlossaryTerm:
    """Stored glossary term."""

    id: int | None = None
    project_id: int = 0
    term: str = ""
    slug: str = ""
    definition: str = ""
    tags: list[str] = field(default_factory=list)
    confidence: float = 0.0
    status: str = "published"


class Database:
    """DuckDB database wrapper for repo-glossary."""

    # SQL for creating tables
    _SCHEMA = """
    CREATE TABLE IF NOT EXISTS projects (
        id INTEGER PRIMARY KEY,
        name VARCHAR NOT NULL,
        slug VARCHAR NOT NULL UNIQUE,
        repo VARCHAR NOT NULL UNIQUE,
        files_analyzed JSON,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE SEQUENCE IF NOT EXISTS projects_id_seq START 1;

    CREATE TABLE IF NOT EXISTS glossary_terms (
        id INTEGER PRIMARY KEY,
        project_id INTEGER NOT NULL,
        term VARCHAR NOT NULL,
        slug VARCHAR NOT NULL,
        definition TEXT NOT NULL,
        tags VARCHAR[],
        confidence FLOAT,
        status VARCHAR DEFAULT 'published',
        position INTEGER NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE SEQUENCE IF NOT EXISTS glossary_terms_id_seq START 1;

    -- Processing log for audit trail
    CREATE TABLE IF NOT EXISTS processing_log (
        id INTEGER PRIMARY KEY,
        run_id VARCHAR NOT NULL,
        repo VARCHAR,
        stage VARCHAR NOT NULL,
        level VARCHAR NOT NULL,
        message TEXT NOT NULL,
        context JSON,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE SEQUENCE IF NOT EXISTS processing_log_id_seq START 1;

    CREATE INDEX IF NOT EXISTS idx_terms_project ON glossary_terms(project_id);
    CREATE INDEX IF NOT EXISTS idx_log_lookup ON processing_log(run_id, stage, level);
    """

    def __init__(self, db_path: Path | str):
        """Initialize database connection."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: duckdb.DuckDBPyConnection | None = None
        self._run_id = str(uuid.uuid4())

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = duckdb.connect(str(self.db_path))
            self._conn.execute(self._SCHEMA)
        return self._conn

    @property
    def run_id(self) -> str:
        """Get current run ID."""
        return self._run_id

    def new_run(self) -> str:
        """Start a new run and return its ID."""
        self._run_id = str(uuid.uuid4())
        return self._run_id

    def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @contextmanager
    def transaction(self) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        """Context manager for transactions."""
        try:
            self.conn.begin()
            yield self.conn
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

    # ==================== Projects ====================

    def save_result(self, result: PipelineResult, name: str | None = None) -> Project:
        """
        Store a pipeline result.

        Re-importing a repository replaces its previous terms. New projects
        get a slug derived from name (default: the repository name) that is
        made unique with a numeric suffix.
        """
        existing = self.get_project_by_repo(result.repository)

        with self.transaction() as conn:
            if existing is not None:
                conn.execute("DELETE FROM glossary_terms WHERE project_id = ?", [existing.id])
                conn.execute(
                    """
                    UPDATE projects
                    SET files_analyzed = ?, updated_at = CURRENT_TIMESTAMP
                    WHERE id = ?
                    """,
                    [json.dumps(result.files_analyzed), existing.id],
                )
                project_id = existing.id
            else:
                project_name = name or result.repository.split("/")[-1]
                slug = self._unique_slug(slugify(project_name))
                row = conn.execute(
                    """
                    INSERT INTO projects (id, name, slug, repo, files_analyzed)
                    VALUES (nextval('projects_id_seq'), ?, ?, ?, ?)
                    RETURNING id
                    """,
                    [project_name, slug, result.repository, json.dumps(result.files_analyzed)],
                ).fetchone()
                project_id = row[0]

            self._insert_terms(conn, project_id, result.terms)

        project = self.get_project_by_id(project_id)
        if project is None:
            raise GlossaryError(
                f"Project for {result.repository} vanished after saving", {"project_id": project_id}
            )
        return project

    def _insert_terms(
        self,
        conn: duckdb.DuckDBPyConnection,
        project_id: int,
        terms: Sequence[ExtractedTerm],
    ) -> None:
        for position, term in enumerate(terms):
            conn.execute(
                """
                INSERT INTO glossary_terms
                (id, project_id, term, slug, definition, tags, confidence, position)
                VALUES (nextval('glossary_terms_id_seq'), ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    project_id,
                    term.term,
                    slugify(term.term),
                    term.definition,
                    list(term.tags),
                    term.confidence,
                    position,
                ],
            )

    def _unique_slug(self, base: str) -> str:
        slug = base
        suffix = 1
        while self.conn.execute("SELECT 1 FROM projects WHERE slug = ?", [slug]).fetchone():
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    def get_project_by_id(self, project_id: int) -> Project | None:
        row = self.conn.execute("SELECT * FROM projects WHERE id = ?", [project_id]).fetchone()
        return self._row_to_project(row) if row else None

    def get_project_by_repo(self, repo: str) -> Project | None:
        row = self.conn.execute(
            "SELECT * FROM projects WHERE lower(repo) = lower(?)", [repo]
        ).fetchone()
        return self._row_to_project(row) if row else None

    def get_project(self, slug: str) -> Project | None:
        row = self.conn.execute("SELECT * FROM projects WHERE slug = ?", [slug]).fetchone()
        return self._row_to_project(row) if row else None

    def get_projects(self) -> list[Project]:
        rows = self.conn.execute("SELECT * FROM projects ORDER BY updated_at DESC").fetchall()
        return [self._row_to_project(row) for row in rows]

    def get_project_terms(self, project_id: int) -> list[GlossaryTerm]:
        """Terms of a project in their ranked order."""
        rows = self.conn.execute(
            """
            SELECT id, project_id, term, slug, definition, tags, confidence, status
            FROM glossary_terms
            WHERE project_id = ?
            ORDER BY position
            """,
            [project_id],
        ).fetchall()
        return [
            GlossaryTerm(
                id=row[0],
                project_id=row[1],
                term=row[2],
                slug=row[3],
                definition=row[4],
                tags=list(row[5] or []),
                confidence=row[6],
                status=row[7],
            )
            for row in rows
        ]

    def _row_to_project(self, row: tuple) -> Project:
        """Convert database row to Project."""
        return Project(
            id=row[0],
            name=row[1],
            slug=row[2],
            repo=row[3],
            files_analyzed=json.loads(row[4]) if row[4] else [],
            created_at=row[5],
            updated_at=row[6],
        )

    # ==================== Logging ====================

    def log(
        self,
        level: str,
        stage: str,
        message: str,
        repo: str | None = None,
        context: dict | None = None,
    ) -> None:
        """Insert a log entry."""
        context_json = json.dumps(context) if context else None
        self.conn.execute(
            """
            INSERT INTO processing_log
            (id, run_id, repo, stage, level, message, context)
            VALUES (nextval('processing_log_id_seq'), ?, ?, ?, ?, ?, ?)
            """,
            [self._run_id, repo, stage, level, message, context_json],
        )

    def get_logs(
        self,
        run_id: str | None = None,
        level: str | None = None,
        repo: str | None = None,
        limit: int = 100,
    ) -> list[dict]:
        """Get log entries, newest first."""
        conditions = []
        params: list[Any] = []

        if run_id:
            conditions.append("run_id = ?")
            params.append(run_id)
        if level:
            conditions.append("level = ?")
            params.append(level.upper())
        if repo:
            conditions.append("repo = ?")
            params.append(repo)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        rows = self.conn.execute(
            f"""
            SELECT run_id, repo, stage, level, message, context, created_at
            FROM processing_log
            {where_clause}
            ORDER BY id DESC
            LIMIT ?
            """,
            [*params, limit],
        ).fetchall()

        return [
            {
                "run_id": row[0],
                "repo": row[1],
                "stage": row[2],
                "level": row[3],
                "message": row[4],
                "context": json.loads(row[5]) if row[5] else None,
                "created_at": row[6],
            }
            for row in rows
        ]

    # ==================== Statistics ====================

    def get_statistics(self) -> dict:
        """Get overall counts."""
        projects = self.conn.execute("SELECT COUNT(*) FROM projects").fetchone()[0]
        terms = self.conn.execute("SELECT COUNT(*) FROM glossary_terms").fetchone()[0]
        avg_confidence = self.conn.execute(
            "SELECT AVG(confidence) FROM glossary_terms"
        ).fetchone()[0]
        warnings = self.conn.execute(
            "SELECT COUNT(*) FROM processing_log WHERE level IN ('WARNING', 'ERROR')"
        ).fetchone()[0]
        return {
            "total_projects": projects,
            "total_terms": terms,
            "avg_confidence": float(avg_confidence) if avg_confidence is not None else 0.0,
            "log_warnings": warnings,
        }
