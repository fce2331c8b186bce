"""
Shared CLI utilities: running bridge calls, error reporting and the Rich
tables every list command draws.
"""
import asyncio
import logging
import sys
import click
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional
from rich.table import Table
from rich import box
from rich.panel import Panel

from ..app import AppContext
from ..constants import SYNOPSIS_PREVIEW_CHARS
from ..logging import AniToWatchError, APIError, console
from ..models import ListKind
from ..views import (
    ListSummary,
    filter_by_status,
    format_progress,
    format_status,
    sort_entries,
)

logger = logging.getLogger(__name__)

BridgeAction = Callable[[AppContext], Awaitable[Any]]


def get_app(ctx: click.Context) -> AppContext:
    """Returns the AppContext the root group put on the click context."""
    app = ctx.find_object(AppContext)
    if app is None:
        raise click.UsageError("No application context; run through the anitowatch command group.")
    return app


def run_with_app(app: AppContext, action: BridgeAction) -> Any:
    """Starts the app, runs one async action against it and shuts it down."""
    async def _runner():
        async with app:
            return await action(app)
    return asyncio.run(_runner())


def run_bridge_action(app: AppContext, action: BridgeAction, failure_message: str) -> Any:
    """
    Runs an action and turns failures into user-facing messages.

    Catalog failures show an error state; storage and bridge failures show
    a short notification. Both exit with status 1.
    """
    try:
        return run_with_app(app, action)
    except APIError as e:
        logger.error(f"Catalog request failed: {e}")
        console.print(f"[red]Could not load data from Jikan: {e}[/red]")
        sys.exit(1)
    except AniToWatchError as e:
        logger.error(f"{failure_message}: {e}")
        console.print(Panel(f"{failure_message} Please try again.\n[dim]{e}[/dim]", style="red", expand=False))
        sys.exit(1)


async def fetch_record(app: AppContext, kind: str, mal_id: int, full: bool = False) -> Dict[str, Any]:
    """Fetches one Jikan record without blocking the event loop."""
    return await asyncio.to_thread(app.catalog.get, kind, mal_id, full)


def render_entries(
    kind: ListKind,
    entries: List[Mapping[str, Any]],
    status: Optional[str] = None,
    sort_key: str = "added"
) -> None:
    """Prints a list as a table after filtering by status and sorting."""
    shown = sort_entries(kind, filter_by_status(entries, status), sort_key)
    if not shown:
        empty = {
            ListKind.WATCHLIST: "Your watchlist is empty. Add anime with 'anitowatch watchlist add <MAL_ID>'.",
            ListKind.READINGLIST: "Your reading list is empty. Add manga with 'anitowatch readinglist add <MAL_ID>'.",
            ListKind.FAVORITES: "No favorite characters yet. Add one with 'anitowatch favorites add <MAL_ID>'.",
        }[kind]
        console.print(f"[yellow]{empty}[/yellow]")
        return

    if kind is ListKind.FAVORITES:
        table = Table(title="Favorite Characters", box=box.ROUNDED)
        table.add_column("MAL ID", justify="right", style="cyan")
        table.add_column("Name", style="white bold")
        table.add_column("Anime", style="dim")
        table.add_column("Favorites", justify="right", style="magenta")
        table.add_column("Added", style="dim")
        for e in shown:
            table.add_row(
                str(e.get("mal_id")),
                str(e.get("name") or "?"),
                str(e.get("anime") or "Unknown"),
                f"{int(e.get('favorites') or 0):,}",
                str(e.get("added_date") or "")[:10],
            )
        console.print(table)
        return

    unit = "Episodes" if kind is ListKind.WATCHLIST else "Chapters"
    done_field, total_field = (
        ("episodes_watched", "episodes") if kind is ListKind.WATCHLIST else ("chapters_read", "chapters")
    )
    title = "Watchlist" if kind is ListKind.WATCHLIST else "Reading List"

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("MAL ID", justify="right", style="cyan")
    table.add_column("Title", style="white bold")
    table.add_column("Status", justify="center")
    table.add_column(unit, justify="right")
    table.add_column("Score", justify="right", style="yellow")
    table.add_column("Your Rating", justify="right", style="green")
    table.add_column("Notes", style="dim")
    for e in shown:
        table.add_row(
            str(e.get("mal_id")),
            str(e.get("title") or "?"),
            format_status(e.get("status")),
            format_progress(e, done_field, total_field),
            str(e.get("score") or "N/A"),
            str(e.get("rating") or "Not rated"),
            str(e.get("notes") or ""),
        )
    console.print(table)


def render_summary(kind: ListKind, summary: ListSummary) -> None:
    noun = {ListKind.WATCHLIST: "anime", ListKind.READINGLIST: "manga", ListKind.FAVORITES: "characters"}[kind]
    lines = [f"[bold]{summary.total}[/bold] {noun}"]
    if kind is ListKind.WATCHLIST:
        lines.append(f"[bold]{summary.progress}[/bold] episodes watched")
    elif kind is ListKind.READINGLIST:
        lines.append(f"[bold]{summary.progress}[/bold] chapters read")
    if kind is not ListKind.FAVORITES:
        lines.append(f"[bold]{summary.completed}[/bold] completed")
    console.print(Panel("\n".join(lines), title="Stats", style="magenta", expand=False))


def render_catalog(kind: str, items: List[Mapping[str, Any]], title: str) -> None:
    """Prints raw Jikan records (anime, manga or characters) as a table."""
    if not items:
        console.print(f"[yellow]No {kind} found.[/yellow]")
        return

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("MAL ID", justify="right", style="cyan")
    if kind == "characters":
        table.add_column("Name", style="white bold")
        table.add_column("Favorites", justify="right", style="magenta")
        for item in items:
            table.add_row(str(item.get("mal_id")), str(item.get("name") or "?"), f"{int(item.get('favorites') or 0):,}")
    else:
        count_field = "episodes" if kind == "anime" else "chapters"
        table.add_column("Title", style="white bold")
        table.add_column("Type", style="dim")
        table.add_column(count_field.capitalize(), justify="right")
        table.add_column("Score", justify="right", style="yellow")
        for item in items:
            table.add_row(
                str(item.get("mal_id")),
                str(item.get("title") or "?"),
                str(item.get("type") or ""),
                str(item.get(count_field) or "?"),
                str(item.get("score") or "N/A"),
            )
    console.print(table)


def render_record(kind: str, record: Mapping[str, Any]) -> None:
    """Detail panel for one anime or manga record."""
    genres = ", ".join(g.get("name", "") for g in record.get("genres") or [])
    synopsis = (record.get("synopsis") or "No synopsis available.").strip()
    if len(synopsis) > SYNOPSIS_PREVIEW_CHARS:
        synopsis = synopsis[:SYNOPSIS_PREVIEW_CHARS].rstrip() + "..."

    rows = [
        ("Type", record.get("type")),
        ("Status", record.get("status")),
        ("Episodes" if kind == "anime" else "Chapters", record.get("episodes" if kind == "anime" else "chapters")),
        ("Score", record.get("score")),
        ("Rating", record.get("rating")),
        ("Genres", genres),
    ]
    body = "\n".join(f"[bold]{label}:[/bold] {value}" for label, value in rows if value)
    title = record.get("title_english") or record.get("title") or f"#{record.get('mal_id')}"
    console.print(Panel(f"{body}\n\n{synopsis}", title=f"[bold]{title}[/bold]", expand=False))


def render_character(record: Mapping[str, Any], voices: List[Mapping[str, Any]]) -> None:
    """Detail panel for one character, followed by its voice actors."""
    about = (record.get("about") or "No biography available.").strip()
    if len(about) > SYNOPSIS_PREVIEW_CHARS:
        about = about[:SYNOPSIS_PREVIEW_CHARS].rstrip() + "..."

    appearances = ", ".join(
        str((a.get("anime") or {}).get("title") or "?") for a in (record.get("anime") or [])[:5]
    )
    rows = [
        ("Kanji", record.get("name_kanji")),
        ("Nicknames", ", ".join(record.get("nicknames") or [])),
        ("Favorites", f"{int(record.get('favorites') or 0):,}"),
        ("Anime", appearances),
    ]
    body = "\n".join(f"[bold]{label}:[/bold] {value}" for label, value in rows if value)
    name = record.get("name") or f"#{record.get('mal_id')}"
    console.print(Panel(f"{body}\n\n{about}", title=f"[bold]{name}[/bold]", expand=False))

    if not voices:
        console.print("[yellow]No voice actors listed.[/yellow]")
        return

    table = Table(title="Voice Actors", box=box.ROUNDED)
    table.add_column("Language", style="cyan")
    table.add_column("Name", style="white bold")
    table.add_column("MAL ID", justify="right", style="dim")
    for voice in voices:
        person = voice.get("person") or {}
        table.add_row(str(voice.get("language") or "?"), str(person.get("name") or "?"), str(person.get("mal_id") or ""))
    console.print(table)
