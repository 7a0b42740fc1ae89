"""Shared SQL helpers for the repository modules."""

from __future__ import annotations

import json
from typing import Any, Sequence


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_clause(
    columns: Sequence[str], search: str | None
) -> tuple[str, list[Any]]:
    """Build a case-insensitive substring filter over whitelisted columns.

    Columns are combined with OR. Returns ("", []) for an empty search.

    Args:
        columns: Fixed column names owned by the caller (never user input)
        search: Raw search term from the request

    Returns:
        Tuple of (WHERE fragment without the keyword, bound parameters)
    """
    term = (search or "").strip()
    if not term:
        return "", []

    pattern = f"%{escape_like(term.lower())}%"
    fragment = " OR ".join(f"LOWER({column}) LIKE ? ESCAPE '\\'" for column in columns)
    return f"({fragment})", [pattern] * len(columns)


def order_clause(column: str, direction: str) -> str:
    """ORDER BY for an allow-listed column, ties broken by insertion order.

    Both arguments must come from validators.resolve_sort().
    """
    return f" ORDER BY {column} {direction}, id {direction}"


def encode_json_list(items: list[str] | None) -> str:
    """Serialize a list column."""
    return json.dumps(list(items or []))


def decode_json_list(raw: str | None) -> list[str]:
    """Deserialize a list column; empty or malformed values become []."""
    if not raw:
        return []
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        return []
    return decoded if isinstance(decoded, list) else []
