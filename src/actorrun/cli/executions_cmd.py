"""CLI commands for inspecting execution records."""

from __future__ import annotations

import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

executions_app = typer.Typer(help="Inspect actor executions.")
console = Console()

_STATUS_STYLE = {"completed": "green", "failed": "red", "running": "yellow", "pending": "dim"}


@executions_app.command("list")
def list_executions(
    actor: Optional[str] = typer.Argument(None, help="Actor id or namespace (all actors when omitted)."),
    limit: int = typer.Option(20, "--limit", "-n"),
) -> None:
    """List executions, newest first."""
    from actorrun.store import build_stores

    actors, executions, _ = build_stores()
    actor_id = None
    if actor:
        found = actors.find_actor(actor)
        if found is None:
            console.print(f"[red]✗[/red] Actor {actor!r} not found")
            raise typer.Exit(code=1)
        actor_id = found.id

    rows = executions.list_executions(actor_id, limit=limit)
    if not rows:
        console.print("No executions found.")
        return

    table = Table(title="Executions")
    table.add_column("ID", style="dim")
    table.add_column("Actor")
    table.add_column("Status")
    table.add_column("Started")
    table.add_column("Ended")
    for ex in rows:
        style = _STATUS_STYLE.get(ex.status.value, "")
        table.add_row(
            ex.id,
            ex.actor_id,
            f"[{style}]{ex.status.value}[/{style}]" if style else ex.status.value,
            str(ex.start_time or "-"),
            str(ex.end_time or "-"),
        )
    console.print(table)


@executions_app.command("show")
def show_execution(execution_id: str = typer.Argument(..., help="Execution id.")) -> None:
    """Print one execution record as JSON."""
    from actorrun.store import build_stores

    _, executions, _ = build_stores()
    execution = executions.get_execution(execution_id)
    if execution is None:
        console.print(f"[red]✗[/red] Execution {execution_id!r} not found")
        raise typer.Exit(code=1)
    console.print_json(json.dumps(execution.model_dump(mode="json"), default=str))
