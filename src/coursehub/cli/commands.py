"""CLI commands for coursehub.

Server commands:
- init-db: Create the SQLite schema
- serve: Run the API with uvicorn

Client commands (talk to a running API, render with rich):
- list / show / create / update / delete RESOURCE
- passwd: Change a student's password
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from coursehub.client.sync import (
    RESOURCES,
    ApiRequestError,
    CourseClient,
    ResourceSpec,
    ResourceView,
)
from coursehub.config import load_app_config
from coursehub.db.database import init_db

app = typer.Typer(
    name="coursehub",
    help="Course management API: students, assignments, discussion and weekly breakdown.",
    no_args_is_help=True,
)

console = Console()

# Fields sent as JSON arrays; repeat --set to add items
LIST_FIELDS = ("files", "links")

# Fields sent as integers
INT_FIELDS = ("id", "assignment_id", "week_id")


def _make_client(api_url: str | None) -> CourseClient:
    """Build the HTTP client for the configured or given API root."""
    return CourseClient(base_url=api_url or load_app_config().client.base_url)


def _resolve_resource_or_exit(name: str) -> ResourceSpec:
    """Resolve resource name, or exit listing the valid ones."""
    spec = RESOURCES.get(name)
    if spec is None:
        console.print(f"[red]✗ Unknown resource '{name}'[/red]")
        console.print("\nAvailable resources:")
        for candidate in RESOURCES:
            console.print(f"  - {candidate}")
        raise typer.Exit(code=1)
    return spec


def parse_set_options(pairs: list[str]) -> dict[str, Any]:
    """Turn repeated key=value options into a request body.

    Examples:
        ["title=HW1", "files=a.pdf", "files=b.pdf"]
            -> {"title": "HW1", "files": ["a.pdf", "b.pdf"]}
        ["links="] -> {"links": []}

    Raises:
        typer.BadParameter: If an item has no "="
    """
    payload: dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'")
        key, value = pair.split("=", 1)
        key = key.strip()

        if key in LIST_FIELDS:
            items = payload.setdefault(key, [])
            if value:
                items.append(value)
        elif key in INT_FIELDS and value.isdigit():
            payload[key] = int(value)
        else:
            payload[key] = value
    return payload


def _format_cell(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    return "" if value is None else str(value)


def render_items(spec: ResourceSpec, items: list[dict[str, Any]]) -> None:
    """Render a list as a table; an empty list is a normal state."""
    if not items:
        console.print(f"[dim]No {spec.name} yet.[/dim]")
        return

    table = Table(title=spec.name)
    for column in spec.columns:
        table.add_column(column)
    for item in items:
        table.add_row(*(_format_cell(item.get(column)) for column in spec.columns))
    console.print(table)


def render_record(spec: ResourceSpec, record: dict[str, Any]) -> None:
    """Render a single record as a field/value table."""
    table = Table(show_header=False, title=f"{spec.name}: {record.get(spec.key_field)}")
    table.add_column("field", style="bold")
    table.add_column("value")
    for key, value in record.items():
        table.add_row(key, _format_cell(value))
    console.print(table)


def _fail(exc: ApiRequestError) -> None:
    status = f" ({exc.status_code})" if exc.status_code else ""
    console.print(f"[red]✗ {exc.message}{status}[/red]")
    raise typer.Exit(code=1)


def _resync(view: ResourceView) -> None:
    """Render the re-fetched list unless a child list has no parent filter."""
    if view.spec.parent_param and not view.filters.get(view.spec.parent_param):
        return
    render_items(view.spec, view.items)


# =============================================================================
# SERVER COMMANDS
# =============================================================================


@app.command("init-db")
def init_db_command(
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite file (defaults to config)"),
) -> None:
    """Create the database schema (idempotent)."""
    path = db or Path(load_app_config().database.path)
    init_db(path)
    console.print(f"[green]✓ Database ready at {path}[/green]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Bind port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        "coursehub.web.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


# =============================================================================
# CLIENT COMMANDS
# =============================================================================


@app.command("list")
def list_command(
    resource: str = typer.Argument(..., help="Resource name, e.g. assignments"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Substring filter"),
    sort: Optional[str] = typer.Option(None, "--sort", help="Sort column"),
    order: Optional[str] = typer.Option(None, "--order", help="asc or desc"),
    parent: Optional[str] = typer.Option(
        None, "--parent", "-p", help="Parent id for comments and replies"
    ),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="API root URL"),
) -> None:
    """List records of a resource."""
    spec = _resolve_resource_or_exit(resource)
    filters: dict[str, Any] = {"search": search, "sort": sort, "order": order}
    if spec.parent_param:
        if not parent:
            console.print(f"[red]✗ {spec.name} needs --parent ({spec.parent_param})[/red]")
            raise typer.Exit(code=1)
        filters[spec.parent_param] = parent

    with _make_client(api_url) as client:
        view = ResourceView(client, spec, filters=filters)
        try:
            view.refresh()
        except ApiRequestError as exc:
            _fail(exc)

    render_items(spec, view.items)


@app.command()
def show(
    resource: str = typer.Argument(..., help="Resource name"),
    item_id: str = typer.Argument(..., help="Record id"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="API root URL"),
) -> None:
    """Show a single record."""
    spec = _resolve_resource_or_exit(resource)
    if spec.parent_param:
        # Child records have no single-record lookup on the server
        console.print(
            f"[red]✗ {spec.name} cannot be shown by id; "
            f"use: list {spec.name} --parent <{spec.parent_param}>[/red]"
        )
        raise typer.Exit(code=1)

    with _make_client(api_url) as client:
        try:
            record = client.get(spec, item_id)
        except ApiRequestError as exc:
            _fail(exc)

    render_record(spec, record)


@app.command()
def create(
    resource: str = typer.Argument(..., help="Resource name"),
    fields: list[str] = typer.Option([], "--set", help="key=value, repeatable"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="API root URL"),
) -> None:
    """Create a record, then show the re-fetched list."""
    spec = _resolve_resource_or_exit(resource)
    payload = parse_set_options(fields)
    filters = {spec.parent_param: payload.get(spec.parent_param)} if spec.parent_param else {}

    with _make_client(api_url) as client:
        view = ResourceView(client, spec, filters=filters)
        try:
            created = view.create(payload)
        except ApiRequestError as exc:
            _fail(exc)

    console.print(f"[green]✓ Created {spec.name} {created.get(spec.key_field)}[/green]")
    _resync(view)


@app.command()
def update(
    resource: str = typer.Argument(..., help="Resource name"),
    item_id: str = typer.Argument(..., help="Record id"),
    fields: list[str] = typer.Option([], "--set", help="key=value, repeatable"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="API root URL"),
) -> None:
    """Update only the given fields, then show the re-fetched list."""
    spec = _resolve_resource_or_exit(resource)
    changes = parse_set_options(fields)

    with _make_client(api_url) as client:
        view = ResourceView(client, spec)
        try:
            updated = view.update(item_id, changes)
        except ApiRequestError as exc:
            _fail(exc)

    console.print(f"[green]✓ Updated {spec.name} {updated.get(spec.key_field)}[/green]")
    _resync(view)


@app.command()
def delete(
    resource: str = typer.Argument(..., help="Resource name"),
    item_id: str = typer.Argument(..., help="Record id"),
    parent: Optional[str] = typer.Option(
        None, "--parent", "-p", help="Parent id, to re-list comments or replies"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="API root URL"),
) -> None:
    """Delete a record (children are removed with it)."""
    spec = _resolve_resource_or_exit(resource)

    if not yes and not typer.confirm(f"Delete {spec.name} {item_id}?"):
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(code=0)

    filters = {spec.parent_param: parent} if spec.parent_param else {}

    with _make_client(api_url) as client:
        view = ResourceView(client, spec, filters=filters)
        try:
            view.delete(item_id)
        except ApiRequestError as exc:
            _fail(exc)

    console.print(f"[green]✓ Deleted {spec.name} {item_id}[/green]")
    _resync(view)


@app.command()
def passwd(
    student_id: str = typer.Argument(..., help="Student id"),
    current_password: str = typer.Option(
        ..., "--current", prompt=True, hide_input=True, help="Current password"
    ),
    new_password: str = typer.Option(
        ...,
        "--new",
        prompt=True,
        hide_input=True,
        confirmation_prompt=True,
        help="New password",
    ),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="API root URL"),
) -> None:
    """Change a student's password."""
    with _make_client(api_url) as client:
        try:
            client.change_password(student_id, current_password, new_password)
        except ApiRequestError as exc:
            _fail(exc)

    console.print(f"[green]✓ Password updated for {student_id}[/green]")
