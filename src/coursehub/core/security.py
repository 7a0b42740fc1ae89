"""One-way password hashing.

Plain passwords and hashes are never logged or returned to clients.
"""

from __future__ import annotations

from passlib.context import CryptContext

from coursehub.config import load_app_config

_pwd_context: CryptContext | None = None


def get_pwd_context() -> CryptContext:
    """Build the hashing context from the configured schemes (cached)."""
    global _pwd_context

    if _pwd_context is None:
        schemes = load_app_config().security.password_schemes
        _pwd_context = CryptContext(schemes=schemes, deprecated="auto")

    return _pwd_context


def hash_password(password: str) -> str:
    return get_pwd_context().hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return get_pwd_context().verify(plain_password, hashed_password)


def reset_pwd_context() -> None:
    """Drop the cached context (after a config change)."""
    global _pwd_context
    _pwd_context = None
