"""Repository functions for the students table.

The password hash is loaded only by get_password_hash(); every other read
selects the public columns.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from coursehub.db.query import order_clause, search_clause

logger = structlog.get_logger(__name__)

PUBLIC_COLUMNS = "student_id, name, email, created_at"

SEARCH_COLUMNS = ("name", "student_id", "email")
SORT_COLUMNS = ("name", "student_id", "email", "created_at")
DEFAULT_SORT = "name"


@dataclass
class StudentRecord:
    """Student record from database (without password hash)."""

    student_id: str
    name: str
    email: str
    created_at: str


def list_students(
    conn: sqlite3.Connection,
    search: str | None = None,
    sort: str = DEFAULT_SORT,
    direction: str = "ASC",
) -> list[StudentRecord]:
    """List students, optionally filtered by a search term.

    Args:
        conn: Open connection
        search: Substring matched against name, student_id and email
        sort: Allow-listed column (see SORT_COLUMNS)
        direction: "ASC" or "DESC"
    """
    where, params = search_clause(SEARCH_COLUMNS, search)
    sql = f"SELECT {PUBLIC_COLUMNS} FROM students"
    if where:
        sql += f" WHERE {where}"
    sql += order_clause(sort, direction)

    rows = conn.execute(sql, params).fetchall()
    return [_row_to_record(row) for row in rows]


def get_student(conn: sqlite3.Connection, student_id: str) -> StudentRecord | None:
    """Get student by external student_id."""
    row = conn.execute(
        f"SELECT {PUBLIC_COLUMNS} FROM students WHERE student_id = ?", (student_id,)
    ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def student_exists(conn: sqlite3.Connection, student_id: str) -> bool:
    """Check whether a student_id is taken."""
    row = conn.execute(
        "SELECT 1 FROM students WHERE student_id = ?", (student_id,)
    ).fetchone()
    return row is not None


def find_conflict(
    conn: sqlite3.Connection, student_id: str, email: str
) -> bool:
    """Check whether either the student_id or the email is already used."""
    row = conn.execute(
        "SELECT 1 FROM students WHERE student_id = ? OR email = ?",
        (student_id, email),
    ).fetchone()
    return row is not None


def email_taken_by_other(
    conn: sqlite3.Connection, email: str, student_id: str
) -> bool:
    """Check whether another student already uses this email."""
    row = conn.execute(
        "SELECT 1 FROM students WHERE email = ? AND student_id != ?",
        (email, student_id),
    ).fetchone()
    return row is not None


def insert_student(
    conn: sqlite3.Connection,
    student_id: str,
    name: str,
    email: str,
    password_hash: str,
) -> None:
    """Insert a new student.

    Raises:
        sqlite3.IntegrityError: If student_id or email already exists
    """
    conn.execute(
        """
        INSERT INTO students (student_id, name, email, password_hash)
        VALUES (?, ?, ?, ?)
        """,
        (student_id, name, email, password_hash),
    )

    logger.debug("students.inserted", student_id=student_id)


def update_student(
    conn: sqlite3.Connection, student_id: str, fields: dict[str, str]
) -> int:
    """Update the given profile fields.

    Args:
        fields: Mapping of column -> value; keys must be "name" and/or "email"

    Returns:
        Number of rows affected
    """
    columns = [column for column in ("name", "email") if column in fields]
    assignments = ", ".join(f"{column} = ?" for column in columns)
    params = [fields[column] for column in columns] + [student_id]

    cursor = conn.execute(
        f"UPDATE students SET {assignments} WHERE student_id = ?", params
    )

    logger.debug("students.updated", student_id=student_id, fields=columns)
    return cursor.rowcount


def get_password_hash(conn: sqlite3.Connection, student_id: str) -> str | None:
    """Load the stored password hash for verification."""
    row = conn.execute(
        "SELECT password_hash FROM students WHERE student_id = ?", (student_id,)
    ).fetchone()
    return row["password_hash"] if row else None


def set_password_hash(
    conn: sqlite3.Connection, student_id: str, password_hash: str
) -> int:
    """Replace the stored password hash.

    Returns:
        Number of rows affected
    """
    cursor = conn.execute(
        "UPDATE students SET password_hash = ? WHERE student_id = ?",
        (password_hash, student_id),
    )
    return cursor.rowcount


def delete_student(conn: sqlite3.Connection, student_id: str) -> int:
    """Delete a student.

    Returns:
        Number of rows affected
    """
    cursor = conn.execute("DELETE FROM students WHERE student_id = ?", (student_id,))

    if cursor.rowcount:
        logger.debug("students.deleted", student_id=student_id)

    return cursor.rowcount


def _row_to_record(row) -> StudentRecord:
    """Convert database row to StudentRecord."""
    return StudentRecord(
        student_id=row["student_id"],
        name=row["name"],
        email=row["email"],
        created_at=row["created_at"],
    )
