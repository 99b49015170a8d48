"""CLI commands for managing actors."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

actors_app = typer.Typer(help="Create, list, and configure actors.")
console = Console()


def _actor_store():
    from actorrun.store import build_stores

    return build_stores()[0]


@actors_app.command("create")
def create_actor(
    title: str = typer.Argument(..., help="Actor title; the namespace is derived from it."),
    user_id: str = typer.Option(..., "--user", "-u", help="Owner id."),
    url: str = typer.Option("", "--url", help="Platform base URL."),
    description: str = typer.Option("", "--description", "-d"),
    tags: Optional[list[str]] = typer.Option(None, "--tag", help="Tag (repeatable)."),
    script_file: Optional[Path] = typer.Option(None, "--script", help="File with a user-supplied extraction script."),
) -> None:
    """Register a new actor."""
    from actorrun.exceptions import DuplicateNamespaceError

    script = script_file.read_text() if script_file else None
    try:
        actor = _actor_store().create_actor(
            title=title, user_id=user_id, url=url, description=description, tags=tags or [], script=script
        )
    except DuplicateNamespaceError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Created actor [bold]{actor.namespace}[/bold] ({actor.id})")


@actors_app.command("list")
def list_actors(
    user_id: Optional[str] = typer.Option(None, "--user", "-u", help="Only this owner's actors."),
    limit: int = typer.Option(50, "--limit", "-n"),
) -> None:
    """List actors, newest first."""
    actors = _actor_store().list_actors(user_id=user_id, limit=limit)
    if not actors:
        console.print("No actors found.")
        return

    table = Table(title="Actors")
    table.add_column("Namespace", style="bold", no_wrap=True)
    table.add_column("Title")
    table.add_column("URL")
    table.add_column("Script")
    table.add_column("Filters")
    table.add_column("ID", style="dim")
    for actor in actors:
        table.add_row(
            actor.namespace,
            actor.title,
            actor.url or "-",
            "yes" if actor.script else "-",
            "yes" if actor.response_filters else "-",
            actor.id,
        )
    console.print(table)


@actors_app.command("filters")
def set_filters(
    actor: str = typer.Argument(..., help="Actor id or namespace."),
    selected: Optional[str] = typer.Option(None, "--selected", help="Response id to move to the front."),
    properties: Optional[list[str]] = typer.Option(None, "--property", "-p", help="Whitelisted key (repeatable)."),
    path: str = typer.Option("", "--path", help="Dotted path into each response payload."),
    limit: int = typer.Option(20, "--limit", help="Result cap per array."),
    clear: bool = typer.Option(False, "--clear", help="Remove the saved filters."),
) -> None:
    """Save (or clear) the response filters applied to captured responses."""
    from actorrun.models.actor import ResponseFilters

    store = _actor_store()
    found = store.find_actor(actor)
    if found is None:
        console.print(f"[red]✗[/red] Actor {actor!r} not found")
        raise typer.Exit(code=1)

    filters = None if clear else ResponseFilters(
        selected_response_id=selected, properties=properties or [], path=path, default_result=limit
    )
    store.update_response_filters(found.id, filters)
    if filters is None:
        console.print(f"[green]✓[/green] Cleared filters for {found.namespace}")
    else:
        console.print(f"[green]✓[/green] Saved filters for {found.namespace}")
        console.print_json(json.dumps(filters.model_dump(mode="json")))


@actors_app.command("script")
def set_script(
    actor: str = typer.Argument(..., help="Actor id or namespace."),
    script_file: Optional[Path] = typer.Option(None, "--file", "-f", help="Script file; omit to clear."),
) -> None:
    """Set or clear the user-supplied script that overrides planned scripts."""
    store = _actor_store()
    found = store.find_actor(actor)
    if found is None:
        console.print(f"[red]✗[/red] Actor {actor!r} not found")
        raise typer.Exit(code=1)
    store.update_script(found.id, script_file.read_text() if script_file else None)
    console.print(f"[green]✓[/green] Updated script for {found.namespace}")


@actors_app.command("url")
def generate_url(
    actor: str = typer.Argument(..., help="Actor id or namespace."),
    intent: str = typer.Option(..., "--intent", "-i"),
    user_id: str = typer.Option(..., "--user", "-u"),
) -> None:
    """Rewrite the actor's platform URL for an intent and record it."""
    from actorrun.engine.executor import ExtractionEngine
    from actorrun.exceptions import ActorNotFoundError, PlanningError

    engine = ExtractionEngine.from_settings()
    try:
        url = engine.generate_actor_url(actor, intent, user_id=user_id)
    except (ActorNotFoundError, PlanningError) as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)
    console.print(url)


@actors_app.command("delete")
def delete_actor(
    actor: str = typer.Argument(..., help="Actor id or namespace."),
    user_id: str = typer.Option(..., "--user", "-u", help="Owner id; only the owner may delete."),
) -> None:
    """Delete an actor and its execution history."""
    store = _actor_store()
    found = store.find_actor(actor)
    if found is None or found.user_id != user_id:
        console.print(f"[red]✗[/red] Actor {actor!r} not found or not owned by {user_id}")
        raise typer.Exit(code=1)
    store.delete_actor(found.id)
    console.print(f"[green]✓[/green] Deleted actor {found.namespace}")
