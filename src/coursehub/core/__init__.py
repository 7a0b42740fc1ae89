"""Core services for coursehub."""

from coursehub.core.security import hash_password, verify_password

__all__ = ["hash_password", "verify_password"]
