"""Shared fixtures: an isolated app on a temporary SQLite file."""

import sqlite3
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from coursehub.config import clear_config_cache
from coursehub.core.security import reset_pwd_context
from coursehub.db import database
from coursehub.web.api import create_app


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run every test from an empty directory with default config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("COURSEHUB_DB_PATH", raising=False)
    monkeypatch.delenv("COURSEHUB_API_URL", raising=False)
    clear_config_cache()
    reset_pwd_context()
    yield
    clear_config_cache()
    reset_pwd_context()


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "db" / "test.db"


@pytest.fixture
def app(db_path):
    """App serving a fresh database."""
    return create_app(db_path=db_path)


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def broken_store(monkeypatch):
    """Every new connection fails with a driver error."""

    def _connect(db_path):
        raise sqlite3.OperationalError("unable to open database file /secret/path.db")

    monkeypatch.setattr(database, "connect", _connect)


@pytest.fixture
def make_assignment(client):
    """Create an assignment through the API and return its data."""

    def _make(**overrides):
        payload = {
            "title": "HW1",
            "description": "Read chapter one",
            "due_date": "2025-01-10",
        }
        payload.update(overrides)
        response = client.post("/api/assignments?resource=assignments", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def make_topic(client):
    """Create a discussion topic and return its data."""

    def _make(topic_id="T1", **overrides):
        payload = {
            "topic_id": topic_id,
            "subject": "Exam dates",
            "message": "When is the midterm?",
            "author": "ana",
        }
        payload.update(overrides)
        response = client.post("/api/discussion?resource=topics", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def make_week(client):
    """Create a week and return its data."""

    def _make(**overrides):
        payload = {
            "title": "Week 1",
            "start_date": "2025-01-06",
            "description": "Introduction",
            "links": ["https://example.com/intro"],
        }
        payload.update(overrides)
        response = client.post("/api/weekly?resource=weeks", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make
