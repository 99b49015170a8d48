"""CLI commands for inspecting and validating actorrun settings."""

from __future__ import annotations

import json

import typer
from rich.console import Console

settings_app = typer.Typer(help="Inspect and validate actorrun configuration.")
console = Console()


@settings_app.command("show")
def show_settings() -> None:
    """Display the currently resolved settings (API key masked)."""
    from actorrun.settings import get_settings

    data = get_settings().model_dump(mode="json")
    if data["llm"].get("api_key"):
        data["llm"]["api_key"] = "***"
    console.print_json(json.dumps(data, indent=2, default=str))


@settings_app.command("validate")
def validate_settings() -> None:
    """Validate settings and report any issues."""
    from actorrun.settings import get_settings

    try:
        settings = get_settings()
        console.print("[green]✓[/green] Settings are valid.")
        console.print(f"  Environment: {settings.env}")
        console.print(f"  LLM provider: {settings.llm.provider} ({settings.llm.model})")
        console.print(f"  Plan cache: {settings.planner.cache_backend}")
        console.print(f"  Database: {settings.storage.database_url or settings.storage.sqlite_path}")
    except Exception as e:
        console.print(f"[red]✗[/red] Settings validation failed: {e}")
        raise typer.Exit(code=1)

    if settings.llm.provider == "deepseek" and not settings.llm.api_key:
        console.print("[yellow]⚠[/yellow] ACTORRUN_LLM__API_KEY is not set; planning calls will fail.")
