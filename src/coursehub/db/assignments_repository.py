"""Repository functions for assignments and their comments."""

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
SORT_COLUMNS = ("title", "due_date", "created_at")
DEFAULT_SORT = "due_date"

UPDATABLE_COLUMNS = ("title", "description", "due_date", "files")


@dataclass
class AssignmentRecord:
    """Assignment record from database."""

    id: int
    title: str
    description: str
    due_date: str
    files: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""


@dataclass
class AssignmentCommentRecord:
    """Comment attached to an assignment."""

    id: int
    assignment_id: int
    author: str
    text: str
    created_at: str


def list_assignments(
    conn: sqlite3.Connection,
    search: str | None = None,
    sort: str = DEFAULT_SORT,
    direction: str = "ASC",
) -> list[AssignmentRecord]:
    """List assignments, optionally filtered by title/description."""
    where, params = search_clause(SEARCH_COLUMNS, search)
    sql = "SELECT * FROM assignments"
    if where:
        sql += f" WHERE {where}"
    sql += order_clause(sort, direction)

    rows = conn.execute(sql, params).fetchall()
    return [_row_to_record(row) for row in rows]


def get_assignment(conn: sqlite3.Connection, assignment_id: int) -> AssignmentRecord | None:
    """Get assignment by id."""
    row = conn.execute(
        "SELECT * FROM assignments WHERE id = ?", (assignment_id,)
    ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def assignment_exists(conn: sqlite3.Connection, assignment_id: int) -> bool:
    """Check whether an assignment exists."""
    row = conn.execute(
        "SELECT 1 FROM assignments WHERE id = ?", (assignment_id,)
    ).fetchone()
    return row is not None


def insert_assignment(
    conn: sqlite3.Connection,
    title: str,
    description: str,
    due_date: str,
    files: list[str],
) -> int:
    """Insert a new assignment.

    Returns:
        Server-assigned id
    """
    cursor = conn.execute(
        """
        INSERT INTO assignments (title, description, due_date, files)
        VALUES (?, ?, ?, ?)
        """,
        (title, description, due_date, encode_json_list(files)),
    )

    logger.debug("assignments.inserted", assignment_id=cursor.lastrowid)
    return cursor.lastrowid


def update_assignment(
    conn: sqlite3.Connection, assignment_id: int, fields: dict
) -> int:
    """Update the given columns and bump updated_at.

    Args:
        fields: Mapping of column -> value; keys from UPDATABLE_COLUMNS

    Returns:
        Number of rows affected
    """
    columns = [column for column in UPDATABLE_COLUMNS if column in fields]
    assignments = ", ".join(f"{column} = ?" for column in columns)
    params = [
        encode_json_list(fields[column]) if column == "files" else fields[column]
        for column in columns
    ]

    cursor = conn.execute(
        f"UPDATE assignments SET {assignments}, updated_at = datetime('now') WHERE id = ?",
        params + [assignment_id],
    )

    logger.debug("assignments.updated", assignment_id=assignment_id, fields=columns)
    return cursor.rowcount


def delete_assignment(conn: sqlite3.Connection, assignment_id: int) -> int:
    """Delete an assignment together with its comments.

    Must run inside a transaction so the ordered deletes are atomic.

    Returns:
        Number of assignment rows affected
    """
    removed = conn.execute(
        "DELETE FROM assignment_comments WHERE assignment_id = ?", (assignment_id,)
    ).rowcount
    cursor = conn.execute("DELETE FROM assignments WHERE id = ?", (assignment_id,))

    logger.debug(
        "assignments.deleted",
        assignment_id=assignment_id,
        comments_removed=removed,
    )
    return cursor.rowcount


def list_comments(
    conn: sqlite3.Connection, assignment_id: int
) -> list[AssignmentCommentRecord]:
    """List comments of an assignment, oldest first."""
    rows = conn.execute(
        """
        SELECT * FROM assignment_comments
        WHERE assignment_id = ?
        ORDER BY created_at ASC, id ASC
        """,
        (assignment_id,),
    ).fetchall()
    return [_row_to_comment(row) for row in rows]


def get_comment(conn: sqlite3.Connection, comment_id: int) -> AssignmentCommentRecord | None:
    """Get a comment by id."""
    row = conn.execute(
        "SELECT * FROM assignment_comments WHERE id = ?", (comment_id,)
    ).fetchone()
    return _row_to_comment(row) if row else None


def insert_comment(
    conn: sqlite3.Connection, assignment_id: int, author: str, text: str
) -> int:
    """Insert a comment.

    Returns:
        Server-assigned id
    """
    cursor = conn.execute(
        "INSERT INTO assignment_comments (assignment_id, author, text) VALUES (?, ?, ?)",
        (assignment_id, author, text),
    )
    return cursor.lastrowid


def delete_comment(conn: sqlite3.Connection, comment_id: int) -> int:
    """Delete a comment.

    Returns:
        Number of rows affected
    """
    cursor = conn.execute("DELETE FROM assignment_comments WHERE id = ?", (comment_id,))
    return cursor.rowcount


def _row_to_record(row) -> AssignmentRecord:
    """Convert database row to AssignmentRecord."""
    return AssignmentRecord(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        due_date=row["due_date"],
        files=decode_json_list(row["files"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_comment(row) -> AssignmentCommentRecord:
    """Convert database row to AssignmentCommentRecord."""
    return AssignmentCommentRecord(
        id=row["id"],
        assignment_id=row["assignment_id"],
        author=row["author"],
        text=row["text"],
        created_at=row["created_at"],
    )
