"""CLI command for running an actor."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

console = Console()


def parse_context(raw: str | None) -> dict:
    """Parse a ``--context`` JSON object."""
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"--context is not valid JSON: {e}") from e
    if not isinstance(value, dict):
        raise typer.BadParameter("--context must be a JSON object")
    return value


def execute(
    actor: str = typer.Argument(..., help="Actor id or namespace."),
    intent: str = typer.Option(..., "--intent", "-i", help="What to extract, in plain language."),
    context: Optional[str] = typer.Option(None, "--context", "-c", help="Extra context as a JSON object."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the full output JSON to this file."),
) -> None:
    """Plan, capture, and paginate an actor's target page for an intent."""
    from actorrun.engine.executor import ExtractionEngine, ExtractionRequest
    from actorrun.exceptions import ActorNotFoundError
    from actorrun.logging_setup import configure_logging
    from actorrun.settings import get_settings

    settings = get_settings()
    configure_logging(settings.log_level, settings.env)
    request = ExtractionRequest(actor_ref=actor, intent=intent, context=parse_context(context))

    engine = ExtractionEngine.from_settings()
    console.print(Panel(f"[bold]Actor:[/bold] {actor}\n[bold]Intent:[/bold] {intent}", title="actorrun", border_style="blue"))

    try:
        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
            task = progress.add_task("Executing actor...", total=None)
            result = engine.execute(request)
            progress.update(task, completed=True)
    except ActorNotFoundError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)
    finally:
        engine.browser.release_all()

    payload = result.model_dump(mode="json")
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(payload, indent=2, default=str))

    if result.error:
        console.print(f"\n[red]✗[/red] Execution {result.execution_id} failed: {result.error}")
        raise typer.Exit(code=1)

    console.print(f"\n[green]✓[/green] Execution {result.execution_id} completed")
    console.print(f"  URL: {result.url}")
    console.print(f"  Captured responses: {len(result.scraped_data)}")
    if output:
        console.print(f"  Output written to: {output}")
    else:
        console.print_json(json.dumps(payload["result"], default=str))
