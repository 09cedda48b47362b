"""SQLite registry of prepared chapters."""

import sqlite3
from pathlib import Path
from typing import Any

from textbook_rag.models.prepared import PreparationSummary


def get_connection(db_path: str | Path) -> sqlite3.Connection:
    """Create a connection to the SQLite database.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        A sqlite3 Connection with row_factory set to Row.
    """
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def initialize_database(db_path: str | Path) -> None:
    """Create the database schema if it doesn't exist.

    Args:
        db_path: Path to the SQLite database file.
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = get_connection(db_path)
    try:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS prepared_chapters (
                chapter_number TEXT PRIMARY KEY,
                chapter_title TEXT NOT NULL,
                chunk_count INTEGER DEFAULT 0,
                dropped_chunks INTEGER DEFAULT 0,
                chunk_size INTEGER NOT NULL,
                chunk_overlap INTEGER NOT NULL,
                embedding_dimension INTEGER DEFAULT 0,
                uploaded INTEGER DEFAULT 0,
                prepared_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            """
        )
        conn.commit()
    finally:
        conn.close()


def record_preparation(
    db_path: str | Path, summary: PreparationSummary, uploaded: bool = False
) -> None:
    """Store or replace the registry row for a prepared chapter.

    Args:
        db_path: Path to an initialized database.
        summary: Preparation statistics for the chapter.
        uploaded: Whether the chunks were pushed to the vector store.
    """
    conn = get_connection(db_path)
    try:
        conn.execute(
            """
            INSERT INTO prepared_chapters (
                chapter_number, chapter_title, chunk_count, dropped_chunks,
                chunk_size, chunk_overlap, embedding_dimension, uploaded,
                prepared_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(chapter_number) DO UPDATE SET
                chapter_title = excluded.chapter_title,
                chunk_count = excluded.chunk_count,
                dropped_chunks = excluded.dropped_chunks,
                chunk_size = excluded.chunk_size,
                chunk_overlap = excluded.chunk_overlap,
                embedding_dimension = excluded.embedding_dimension,
                uploaded = excluded.uploaded,
                prepared_at = excluded.prepared_at
            """,
            (
                summary.chapter_number,
                summary.chapter_title,
                summary.total_chunks,
                summary.dropped_chunks,
                summary.chunk_size,
                summary.chunk_overlap,
                summary.embedding_dimension,
                int(uploaded),
                summary.prepared_at.isoformat(),
            ),
        )
        conn.commit()
    finally:
        conn.close()


def list_preparations(db_path: str | Path) -> list[dict[str, Any]]:
    """Return all registry rows, ordered by chapter number.

    Numeric chapter numbers sort numerically, others after them by text.
    """
    conn = get_connection(db_path)
    try:
        rows = conn.execute(
            """
            SELECT * FROM prepared_chapters
            ORDER BY
                CASE WHEN chapter_number GLOB '[0-9]*'
                     AND chapter_number NOT GLOB '*[^0-9]*' THEN 0 ELSE 1 END,
                CAST(chapter_number AS INTEGER),
                chapter_number
            """
        ).fetchall()
    finally:
        conn.close()
    return [dict(row) for row in rows]
