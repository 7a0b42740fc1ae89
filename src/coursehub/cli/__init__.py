"""Command-line interface for coursehub."""
