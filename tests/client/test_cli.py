"""Tests for the typer command-line interface."""

import pytest
import typer
from fastapi.testclient import TestClient
from typer.testing import CliRunner

from coursehub.cli import commands
from coursehub.cli.commands import app as cli, parse_set_options
from coursehub.client import CourseClient

runner = CliRunner()


@pytest.fixture
def api(app, monkeypatch):
    """Route CLI client commands to the in-process app."""
    monkeypatch.setattr(
        commands, "_make_client", lambda api_url: CourseClient(http=TestClient(app))
    )
    return app


class TestParseSetOptions:
    """Tests for parse_set_options()."""

    def test_lists_and_ints(self):
        payload = parse_set_options(["title=HW1", "files=a.pdf", "files=b.pdf", "week_id=3"])
        assert payload == {"title": "HW1", "files": ["a.pdf", "b.pdf"], "week_id": 3}

    def test_empty_list(self):
        assert parse_set_options(["links="]) == {"links": []}

    def test_value_may_contain_equals(self):
        assert parse_set_options(["description=a=b"]) == {"description": "a=b"}

    def test_missing_equals(self):
        with pytest.raises(typer.BadParameter):
            parse_set_options(["title"])


class TestServerCommands:
    def test_init_db(self, tmp_path):
        db = tmp_path / "cli" / "course.db"
        result = runner.invoke(cli, ["init-db", "--db", str(db)])
        assert result.exit_code == 0
        assert db.exists()


class TestClientCommands:
    def test_list_empty(self, api):
        result = runner.invoke(cli, ["list", "assignments"])
        assert result.exit_code == 0
        assert "No assignments yet." in result.output

    def test_unknown_resource(self, api):
        result = runner.invoke(cli, ["list", "grades"])
        assert result.exit_code == 1
        assert "Unknown resource" in result.output

    def test_create_then_list(self, api):
        result = runner.invoke(
            cli,
            [
                "create",
                "assignments",
                "--set", "title=HW1",
                "--set", "description=Read",
                "--set", "due_date=2025-01-10",
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Created assignments" in result.output
        assert "HW1" in result.output

    def test_create_failure_exits(self, api):
        result = runner.invoke(
            cli, ["create", "assignments", "--set", "title=HW1", "--set", "description=x"]
        )
        assert result.exit_code == 1
        assert "Missing required field: due_date" in result.output

    def test_show_and_update(self, api):
        runner.invoke(
            cli,
            ["create", "topics", "--set", "topic_id=T1", "--set", "subject=Exams",
             "--set", "message=When?", "--set", "author=ana"],
        )
        result = runner.invoke(cli, ["update", "topics", "T1", "--set", "subject=Midterm"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ["show", "topics", "T1"])
        assert result.exit_code == 0
        assert "Midterm" in result.output

    def test_show_missing(self, api):
        result = runner.invoke(cli, ["show", "assignments", "999"])
        assert result.exit_code == 1
        assert "Assignment not found (404)" in result.output

    @pytest.mark.parametrize("resource", ["replies", "assignment-comments", "week-comments"])
    def test_show_child_resource_refused(self, api, resource):
        result = runner.invoke(cli, ["show", resource, "1"])
        assert result.exit_code == 1
        assert "cannot be shown by id" in result.output
        assert "--parent" in result.output

    def test_delete_with_yes(self, api):
        runner.invoke(
            cli,
            ["create", "weeks", "--set", "title=Week 1", "--set", "start_date=2025-01-06",
             "--set", "description="],
        )
        result = runner.invoke(cli, ["delete", "weeks", "1", "--yes"])
        assert result.exit_code == 0, result.output
        assert "No weeks yet." in result.output

    def test_delete_cancelled(self, api):
        result = runner.invoke(cli, ["delete", "weeks", "1"], input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in result.output

    def test_replies_list_needs_parent(self, api):
        runner.invoke(
            cli,
            ["create", "topics", "--set", "topic_id=T1", "--set", "subject=S",
             "--set", "message=M", "--set", "author=ana"],
        )
        result = runner.invoke(
            cli,
            ["create", "replies", "--set", "topic_id=T1", "--set", "text=Hello",
             "--set", "author=bob"],
        )
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ["list", "replies", "--parent", "T1"])
        assert "Hello" in result.output

        result = runner.invoke(cli, ["list", "replies"])
        assert result.exit_code == 1
        assert "needs --parent" in result.output

    def test_passwd(self, api):
        runner.invoke(
            cli,
            ["create", "students", "--set", "student_id=S1", "--set", "name=Ana",
             "--set", "email=ana@x.com", "--set", "password=secret-pass"],
        )
        result = runner.invoke(
            cli, ["passwd", "S1", "--current", "secret-pass", "--new", "brand-new-pass"]
        )
        assert result.exit_code == 0, result.output
        assert "Password updated for S1" in result.output

        result = runner.invoke(
            cli, ["passwd", "S1", "--current", "wrong", "--new", "another-pass"]
        )
        assert result.exit_code == 1
        assert "401" in result.output
