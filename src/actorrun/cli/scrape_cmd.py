"""CLI command for scraping named selectors from a page."""

from __future__ import annotations

import json
from typing import Optional

import typer
from rich.console import Console

console = Console()


def parse_selectors(pairs: list[str]) -> dict[str, str]:
    """Parse repeated ``name=selector`` options into a mapping."""
    selectors: dict[str, str] = {}
    for pair in pairs:
        name, sep, selector = pair.partition("=")
        if not sep or not name.strip() or not selector.strip():
            raise typer.BadParameter(f"Expected name=selector, got {pair!r}")
        selectors[name.strip()] = selector.strip()
    return selectors


def scrape(
    url: str = typer.Argument(..., help="Page to load."),
    selector: Optional[list[str]] = typer.Option(None, "--selector", "-s", help="name=css-selector (repeatable)."),
) -> None:
    """Print the trimmed text of each named selector on a page."""
    from actorrun.browser.scrape import SelectorScraper
    from actorrun.exceptions import NavigationError

    selectors = parse_selectors(selector or [])
    if not selectors:
        raise typer.BadParameter("At least one --selector is required")

    scraper = SelectorScraper.from_settings()
    try:
        data = scraper.scrape(url, selectors)
    except NavigationError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)
    finally:
        scraper.browser.release_all()

    console.print_json(json.dumps(data))
