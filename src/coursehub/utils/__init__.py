"""Utility helpers for coursehub."""
