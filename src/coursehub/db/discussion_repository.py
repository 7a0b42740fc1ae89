"""Repository functions for discussion topics and replies.

Topics and replies are addressed by their external keys (topic_id,
reply_id); the integer rowid only orders ties.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from coursehub.db.query import order_clause, search_clause

logger = structlog.get_logger(__name__)

SEARCH_COLUMNS = ("subject", "message", "author")
SORT_COLUMNS = ("subject", "author", "created_at")
DEFAULT_SORT = "created_at"
DEFAULT_ORDER = "desc"

UPDATABLE_COLUMNS = ("subject", "message")


@dataclass
class TopicRecord:
    """Discussion topic."""

    topic_id: str
    subject: str
    message: str
    author: str
    created_at: str


@dataclass
class ReplyRecord:
    """Reply to a topic."""

    reply_id: str
    topic_id: str
    text: str
    author: str
    created_at: str


def list_topics(
    conn: sqlite3.Connection,
    search: str | None = None,
    sort: str = DEFAULT_SORT,
    direction: str = "DESC",
) -> list[TopicRecord]:
    """List topics, newest first unless another order is requested."""
    where, params = search_clause(SEARCH_COLUMNS, search)
    sql = "SELECT topic_id, subject, message, author, created_at FROM topics"
    if where:
        sql += f" WHERE {where}"
    sql += order_clause(sort, direction)

    rows = conn.execute(sql, params).fetchall()
    return [_row_to_topic(row) for row in rows]


def get_topic(conn: sqlite3.Connection, topic_id: str) -> TopicRecord | None:
    """Get topic by topic_id."""
    row = conn.execute(
        """
        SELECT topic_id, subject, message, author, created_at
        FROM topics WHERE topic_id = ?
        """,
        (topic_id,),
    ).fetchone()
    return _row_to_topic(row) if row else None


def topic_exists(conn: sqlite3.Connection, topic_id: str) -> bool:
    """Check whether a topic_id is taken."""
    row = conn.execute("SELECT 1 FROM topics WHERE topic_id = ?", (topic_id,)).fetchone()
    return row is not None


def insert_topic(
    conn: sqlite3.Connection,
    topic_id: str,
    subject: str,
    message: str,
    author: str,
) -> None:
    """Insert a new topic.

    Raises:
        sqlite3.IntegrityError: If topic_id already exists
    """
    conn.execute(
        "INSERT INTO topics (topic_id, subject, message, author) VALUES (?, ?, ?, ?)",
        (topic_id, subject, message, author),
    )

    logger.debug("topics.inserted", topic_id=topic_id)


def update_topic(conn: sqlite3.Connection, topic_id: str, fields: dict[str, str]) -> int:
    """Update subject and/or message.

    Returns:
        Number of rows affected
    """
    columns = [column for column in UPDATABLE_COLUMNS if column in fields]
    assignments = ", ".join(f"{column} = ?" for column in columns)
    params = [fields[column] for column in columns] + [topic_id]

    cursor = conn.execute(f"UPDATE topics SET {assignments} WHERE topic_id = ?", params)
    return cursor.rowcount


def delete_topic(conn: sqlite3.Connection, topic_id: str) -> int:
    """Delete a topic and all of its replies.

    Must run inside a transaction so the ordered deletes are atomic.

    Returns:
        Number of topic rows affected
    """
    removed = conn.execute("DELETE FROM replies WHERE topic_id = ?", (topic_id,)).rowcount
    cursor = conn.execute("DELETE FROM topics WHERE topic_id = ?", (topic_id,))

    logger.debug("topics.deleted", topic_id=topic_id, replies_removed=removed)
    return cursor.rowcount


def list_replies(conn: sqlite3.Connection, topic_id: str) -> list[ReplyRecord]:
    """List replies of a topic, oldest first. Unknown topics yield []."""
    rows = conn.execute(
        """
        SELECT reply_id, topic_id, text, author, created_at
        FROM replies WHERE topic_id = ?
        ORDER BY created_at ASC, id ASC
        """,
        (topic_id,),
    ).fetchall()
    return [_row_to_reply(row) for row in rows]


def get_reply(conn: sqlite3.Connection, reply_id: str) -> ReplyRecord | None:
    """Get reply by reply_id."""
    row = conn.execute(
        """
        SELECT reply_id, topic_id, text, author, created_at
        FROM replies WHERE reply_id = ?
        """,
        (reply_id,),
    ).fetchone()
    return _row_to_reply(row) if row else None


def reply_exists(conn: sqlite3.Connection, reply_id: str) -> bool:
    """Check whether a reply_id is taken."""
    row = conn.execute("SELECT 1 FROM replies WHERE reply_id = ?", (reply_id,)).fetchone()
    return row is not None


def insert_reply(
    conn: sqlite3.Connection,
    reply_id: str,
    topic_id: str,
    text: str,
    author: str,
) -> None:
    """Insert a reply.

    Raises:
        sqlite3.IntegrityError: If reply_id already exists or the topic is gone
    """
    conn.execute(
        "INSERT INTO replies (reply_id, topic_id, text, author) VALUES (?, ?, ?, ?)",
        (reply_id, topic_id, text, author),
    )


def delete_reply(conn: sqlite3.Connection, reply_id: str) -> int:
    """Delete a reply.

    Returns:
        Number of rows affected
    """
    cursor = conn.execute("DELETE FROM replies WHERE reply_id = ?", (reply_id,))
    return cursor.rowcount


def _row_to_topic(row) -> TopicRecord:
    """Convert database row to TopicRecord."""
    return TopicRecord(
        topic_id=row["topic_id"],
        subject=row["subject"],
        message=row["message"],
        author=row["author"],
        created_at=row["created_at"],
    )


def _row_to_reply(row) -> ReplyRecord:
    """Convert database row to ReplyRecord."""
    return ReplyRecord(
        reply_id=row["reply_id"],
        topic_id=row["topic_id"],
        text=row["text"],
        author=row["author"],
        created_at=row["created_at"],
    )
