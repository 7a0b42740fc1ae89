"""Input sanitizing and validation helpers.

Pure functions, no side effects:
- sanitize(text) -> str: trim, strip markup tags, escape HTML entities
- validate_email(email) -> bool
- validate_date(value) -> bool: strict YYYY-MM-DD calendar date
- validate_key(value) -> bool: caller-chosen external key
- is_allowed_value(value, allowed) -> bool
- resolve_sort(sort, order, allowed, ...) -> (column, direction)

Any value that ends up in an SQL identifier position (sort column, order
direction) must come out of resolve_sort().
"""

from __future__ import annotations

import html
import re
from datetime import datetime
from typing import Any, Iterable

from bs4 import BeautifulSoup

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)+$")

# External keys (student_id, topic_id, reply_id) are stored verbatim
KEY_PATTERN = re.compile(r"[A-Za-z0-9_.-]+")

DATE_FORMAT = "%Y-%m-%d"

SORT_ORDERS = ("asc", "desc")


def strip_tags(text: str) -> str:
    """Remove markup tags, keeping the text content."""
    if "<" not in text:
        return text

    return BeautifulSoup(text, "html.parser").get_text()


def sanitize(value: Any) -> Any:
    """Trim, strip tags and escape HTML entities.

    Non-string values are returned unchanged.

    Examples:
        "  hello " -> "hello"
        "<b>Bold</b> & co" -> "Bold &amp; co"
        'say "hi"' -> "say &quot;hi&quot;"
    """
    if not isinstance(value, str):
        return value

    text = strip_tags(value.strip()).strip()
    return html.escape(text, quote=True)


def validate_email(email: str) -> bool:
    """Validate email format.

    Args:
        email: Email address to validate

    Returns:
        True if the address is well formed, False otherwise
    """
    if not isinstance(email, str) or not email:
        return False
    return bool(EMAIL_PATTERN.match(email))


def validate_date(value: str) -> bool:
    """Validate a strict YYYY-MM-DD calendar date.

    The value is parsed and re-rendered; it is valid only if the rendering
    matches the input exactly, so "2024-02-30" and "2024-2-1" are rejected.
    """
    if not isinstance(value, str):
        return False
    try:
        parsed = datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        return False
    return parsed.strftime(DATE_FORMAT) == value


def validate_key(value: Any) -> bool:
    """Letters, digits, "_", "." and "-" only; no whitespace or markup."""
    return isinstance(value, str) and bool(KEY_PATTERN.fullmatch(value))


def is_allowed_value(value: Any, allowed: Iterable[str]) -> bool:
    """Exact membership test against an allow-list."""
    return isinstance(value, str) and value in tuple(allowed)


def resolve_sort(
    sort: str | None,
    order: str | None,
    allowed: Iterable[str],
    default_sort: str,
    default_order: str = "asc",
) -> tuple[str, str]:
    """Map requested sort column and direction onto the allow-list.

    Unknown columns fall back to default_sort and unknown directions fall back
    to default_order; nothing outside the allow-list is ever returned.

    Returns:
        Tuple of (column, "ASC" | "DESC")
    """
    column = sort if is_allowed_value(sort, allowed) else default_sort

    direction = order.lower() if isinstance(order, str) else ""
    if not is_allowed_value(direction, SORT_ORDERS):
        direction = default_order

    return column, direction.upper()


def is_blank(value: Any) -> bool:
    """True for missing values and strings that are empty after trimming."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False
