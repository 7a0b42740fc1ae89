"""Database module for SQLite persistence.

Provides:
- Database connection management (one connection per request)
- Schema initialization
- Repository functions per domain: students, assignments, discussion, weekly
"""

from coursehub.db.database import get_db, init_db, transaction

__all__ = ["get_db", "init_db", "transaction"]
