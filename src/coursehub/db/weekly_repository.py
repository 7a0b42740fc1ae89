"""Repository functions for the weekly breakdown and its comments."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field

import structlog

from coursehub.db.query import (
    decode_json_list,
    encode_json_list,
    order_clause,
    search_clause,
)

logger = structlog.get_logger(__name__)

SEARCH_COLUMNS = ("title", "description")
SORT_COLUMNS = ("title", "start_date", "created_at")
DEFAULT_SORT = "start_date"

UPDATABLE_COLUMNS = ("title", "start_date", "description", "links")


@dataclass
class WeekRecord:
    """One week of the course breakdown."""

    id: int
    title: str
    start_date: str
    description: str
    links: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""


@dataclass
class WeekCommentRecord:
    """Comment attached to a week."""

    id: int
    week_id: int
    author: str
    text: str
    created_at: str


def list_weeks(
    conn: sqlite3.Connection,
    search: str | None = None,
    sort: str = DEFAULT_SORT,
    direction: str = "ASC",
) -> list[WeekRecord]:
    """List weeks, optionally filtered by title/description."""
    where, params = search_clause(SEARCH_COLUMNS, search)
    sql = "SELECT * FROM weeks"
    if where:
        sql += f" WHERE {where}"
    sql += order_clause(sort, direction)

    rows = conn.execute(sql, params).fetchall()
    return [_row_to_week(row) for row in rows]


def get_week(conn: sqlite3.Connection, week_id: int) -> WeekRecord | None:
    """Get week by id."""
    row = conn.execute("SELECT * FROM weeks WHERE id = ?", (week_id,)).fetchone()
    return _row_to_week(row) if row else None


def week_exists(conn: sqlite3.Connection, week_id: int) -> bool:
    """Check whether a week exists."""
    row = conn.execute("SELECT 1 FROM weeks WHERE id = ?", (week_id,)).fetchone()
    return row is not None


def insert_week(
    conn: sqlite3.Connection,
    title: str,
    start_date: str,
    description: str,
    links: list[str],
) -> int:
    """Insert a new week.

    Returns:
        Server-assigned id
    """
    cursor = conn.execute(
        "INSERT INTO weeks (title, start_date, description, links) VALUES (?, ?, ?, ?)",
        (title, start_date, description, encode_json_list(links)),
    )

    logger.debug("weeks.inserted", week_id=cursor.lastrowid)
    return cursor.lastrowid


def update_week(conn: sqlite3.Connection, week_id: int, fields: dict) -> int:
    """Update the given columns and bump updated_at.

    Returns:
        Number of rows affected
    """
    columns = [column for column in UPDATABLE_COLUMNS if column in fields]
    assignments = ", ".join(f"{column} = ?" for column in columns)
    params = [
        encode_json_list(fields[column]) if column == "links" else fields[column]
        for column in columns
    ]

    cursor = conn.execute(
        f"UPDATE weeks SET {assignments}, updated_at = datetime('now') WHERE id = ?",
        params + [week_id],
    )

    logger.debug("weeks.updated", week_id=week_id, fields=columns)
    return cursor.rowcount


def delete_week(conn: sqlite3.Connection, week_id: int) -> int:
    """Delete a week together with its comments.

    Returns:
        Number of week rows affected
    """
    removed = conn.execute(
        "DELETE FROM week_comments WHERE week_id = ?", (week_id,)
    ).rowcount
    cursor = conn.execute("DELETE FROM weeks WHERE id = ?", (week_id,))

    logger.debug("weeks.deleted", week_id=week_id, comments_removed=removed)
    return cursor.rowcount


def list_comments(conn: sqlite3.Connection, week_id: int) -> list[WeekCommentRecord]:
    """List comments of a week, oldest first."""
    rows = conn.execute(
        """
        SELECT * FROM week_comments
        WHERE week_id = ?
        ORDER BY created_at ASC, id ASC
        """,
        (week_id,),
    ).fetchall()
    return [_row_to_comment(row) for row in rows]


def get_comment(conn: sqlite3.Connection, comment_id: int) -> WeekCommentRecord | None:
    """Get a week comment by id."""
    row = conn.execute(
        "SELECT * FROM week_comments WHERE id = ?", (comment_id,)
    ).fetchone()
    return _row_to_comment(row) if row else None


def insert_comment(
    conn: sqlite3.Connection, week_id: int, author: str, text: str
) -> int:
    """Insert a week comment.

    Returns:
        Server-assigned id
    """
    cursor = conn.execute(
        "INSERT INTO week_comments (week_id, author, text) VALUES (?, ?, ?)",
        (week_id, author, text),
    )
    return cursor.lastrowid


def delete_comment(conn: sqlite3.Connection, comment_id: int) -> int:
    """Delete a week comment.

    Returns:
        Number of rows affected
    """
    cursor = conn.execute("DELETE FROM week_comments WHERE id = ?", (comment_id,))
    return cursor.rowcount


def _row_to_week(row) -> WeekRecord:
    """Convert database row to WeekRecord."""
    return WeekRecord(
        id=row["id"],
        title=row["title"],
        start_date=row["start_date"],
        description=row["description"],
        links=decode_json_list(row["links"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_comment(row) -> WeekCommentRecord:
    """Convert database row to WeekCommentRecord."""
    return WeekCommentRecord(
        id=row["id"],
        week_id=row["week_id"],
        author=row["author"],
        text=row["text"],
        created_at=row["created_at"],
    )
