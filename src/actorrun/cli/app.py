"""Unified CLI entry point for actorrun.

Config precedence: settings.default.toml -> settings.<env>.toml -> settings.local.toml -> env vars (ACTORRUN_* with double underscores) -> CLI flags.
"""

from __future__ import annotations

import typer

from actorrun.cli.actors_cmd import actors_app
from actorrun.cli.execute import execute
from actorrun.cli.executions_cmd import executions_app
from actorrun.cli.scrape_cmd import scrape
from actorrun.cli.settings_cmd import settings_app

try:
    from importlib.metadata import version

    VERSION = version("actorrun")
except Exception:
    VERSION = "unknown"

APP_HELP = (
    "actorrun: execution engine for marketplace extraction actors. "
    "Plans, captures, and paginates a live page for a natural-language intent. "
    "Config precedence: settings.default.toml -> settings.<env>.toml -> settings.local.toml -> "
    "env vars (ACTORRUN_* with __) -> CLI flags."
)

app = typer.Typer(add_completion=True, help=APP_HELP)

app.command("execute")(execute)
app.command("scrape")(scrape)
app.add_typer(actors_app, name="actors")
app.add_typer(executions_app, name="executions")
app.add_typer(settings_app, name="settings")


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context, version: bool = typer.Option(False, "--version", help="Show version and exit.")) -> None:
    """Show help when no subcommand is provided."""
    if version:
        typer.echo(f"actorrun {VERSION}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


if __name__ == "__main__":
    app()
