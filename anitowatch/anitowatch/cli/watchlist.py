"""
Watchlist commands for AniToWatch CLI.

List, add, remove and update anime on the watchlist, and show its stats.
"""
import click
import logging
from typing import Optional

from .base import (
    console,
    fetch_record,
    get_app,
    render_entries,
    render_summary,
    run_bridge_action,
)
from ..constants import MAX_PERSONAL_RATING, MIN_PERSONAL_RATING, SORT_KEYS, WATCH_STATUSES
from ..models import ListKind
from ..store import find_entry
from ..views import summarize

logger = logging.getLogger(__name__)


@click.group()
def watchlist() -> None:
    """Track the anime you plan to watch, are watching or have finished."""


@watchlist.command("list")
@click.option("--status", type=click.Choice(("all",) + WATCH_STATUSES), default="all", help="Only show entries with this status.")
@click.option("--sort", "sort_key", type=click.Choice(SORT_KEYS["watchlist"]), default="added", help="Sort order (default: newest first).")
@click.pass_context
def list_watchlist(ctx: click.Context, status: str, sort_key: str) -> None:
    """Shows the watchlist."""
    app = get_app(ctx)

    async def action(app):
        return await app.bridge.get_watchlist()

    entries = run_bridge_action(app, action, "Failed to load watchlist.")
    render_entries(ListKind.WATCHLIST, entries, status=status, sort_key=sort_key)


@watchlist.command("add")
@click.argument("mal_id", type=int)
@click.pass_context
def add_to_watchlist(ctx: click.Context, mal_id: int) -> None:
    """Fetches anime MAL_ID from Jikan and adds it to the watchlist."""
    logger.info(f"Watchlist add started (mal_id={mal_id})")
    app = get_app(ctx)

    async def action(app):
        before = await app.bridge.get_watchlist()
        if find_entry(before, mal_id):
            return before, False
        anime = await fetch_record(app, "anime", mal_id)
        return await app.bridge.add_to_watchlist(anime), True

    entries, added = run_bridge_action(app, action, "Failed to add anime.")
    entry = find_entry(entries, mal_id)
    if added:
        console.print(f"[green]Added \"{entry.get('title') if entry else mal_id}\" to your watchlist.[/green]")
    else:
        console.print(f"[yellow]\"{entry.get('title') if entry else mal_id}\" is already in your watchlist.[/yellow]")


@watchlist.command("remove")
@click.argument("mal_id", type=int)
@click.pass_context
def remove_from_watchlist(ctx: click.Context, mal_id: int) -> None:
    """Removes anime MAL_ID from the watchlist."""
    app = get_app(ctx)

    async def action(app):
        before = await app.bridge.get_watchlist()
        return find_entry(before, mal_id), await app.bridge.remove_from_watchlist(mal_id)

    removed, entries = run_bridge_action(app, action, "Failed to remove anime.")
    if removed:
        console.print(f"[green]Removed \"{removed.get('title')}\" ({len(entries)} left).[/green]")
    else:
        console.print(f"[yellow]Nothing with MAL ID {mal_id} is on your watchlist.[/yellow]")


@watchlist.command("update")
@click.argument("mal_id", type=int)
@click.option("--status", type=click.Choice(WATCH_STATUSES), help="New watch status.")
@click.option("--episodes", "episodes_watched", type=click.IntRange(min=0), help="Episodes watched so far.")
@click.option("--rating", type=click.FloatRange(MIN_PERSONAL_RATING, MAX_PERSONAL_RATING), help="Your rating, 0-10.")
@click.option("--notes", help="Free-text notes (replaces existing notes).")
@click.pass_context
def update_watchlist(
    ctx: click.Context,
    mal_id: int,
    status: Optional[str],
    episodes_watched: Optional[int],
    rating: Optional[float],
    notes: Optional[str]
) -> None:
    """
    Updates progress on anime MAL_ID. Only the options you pass are changed.
    """
    fields = {
        key: value
        for key, value in (
            ("status", status),
            ("episodes_watched", episodes_watched),
            ("rating", rating),
            ("notes", notes),
        )
        if value is not None
    }
    if not fields:
        raise click.UsageError("Nothing to update; pass at least one of --status, --episodes, --rating, --notes.")

    logger.info(f"Watchlist update started (mal_id={mal_id}, fields={fields})")
    app = get_app(ctx)

    async def action(app):
        return await app.bridge.update_watchlist(mal_id, fields)

    entries = run_bridge_action(app, action, "Failed to update anime.")
    entry = find_entry(entries, mal_id)
    if entry is None:
        console.print(f"[yellow]Nothing with MAL ID {mal_id} is on your watchlist.[/yellow]")
        return
    console.print(f"[green]Updated \"{entry.get('title')}\".[/green]")
    render_entries(ListKind.WATCHLIST, [entry])


@watchlist.command("stats")
@click.pass_context
def watchlist_stats(ctx: click.Context) -> None:
    """Shows how much is on the watchlist and how much is watched."""
    app = get_app(ctx)

    async def action(app):
        return await app.bridge.get_watchlist()

    entries = run_bridge_action(app, action, "Failed to load watchlist.")
    render_summary(ListKind.WATCHLIST, summarize(ListKind.WATCHLIST, entries))
