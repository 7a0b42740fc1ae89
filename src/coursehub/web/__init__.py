"""Web API for coursehub."""
