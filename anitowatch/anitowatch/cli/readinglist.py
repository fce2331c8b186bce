"""
Reading list commands for AniToWatch CLI.

List, add, remove and update manga on the reading list, and show its stats.
The bridge has no reading-list update channel, so edits are applied locally.
"""
import click
import logging
from typing import Any, Dict, List, Mapping, Optional

from .base import (
    console,
    fetch_record,
    get_app,
    render_entries,
    render_summary,
    run_bridge_action,
)
from ..app import AppContext
from ..bridge import KindBridge
from ..constants import MAX_PERSONAL_RATING, MIN_PERSONAL_RATING, READ_STATUSES, SORT_KEYS
from ..models import ListKind
from ..store import find_entry
from ..views import summarize

logger = logging.getLogger(__name__)


@click.group()
def readinglist() -> None:
    """Track the manga you want to read."""


@readinglist.command("list")
@click.option("--status", type=click.Choice(("all",) + READ_STATUSES), default="all", help="Only show entries with this status.")
@click.option("--sort", "sort_key", type=click.Choice(SORT_KEYS["readinglist"]), default="added", help="Sort order (default: newest first).")
@click.pass_context
def list_reading_list(ctx: click.Context, status: str, sort_key: str) -> None:
    """Shows the reading list."""
    app = get_app(ctx)

    async def action(app):
        return await app.bridge.get_reading_list()

    entries = run_bridge_action(app, action, "Failed to load reading list.")
    render_entries(ListKind.READINGLIST, entries, status=status, sort_key=sort_key)


@readinglist.command("add")
@click.argument("mal_id", type=int)
@click.pass_context
def add_to_reading_list(ctx: click.Context, mal_id: int) -> None:
    """Fetches manga MAL_ID from Jikan and adds it to the reading list."""
    logger.info(f"Reading list add started (mal_id={mal_id})")
    app = get_app(ctx)

    async def action(app):
        before = await app.bridge.get_reading_list()
        if find_entry(before, mal_id):
            return before, False
        manga = await fetch_record(app, "manga", mal_id)
        return await app.bridge.add_to_reading_list(manga), True

    entries, added = run_bridge_action(app, action, "Failed to add manga.")
    entry = find_entry(entries, mal_id)
    title = entry.get("title") if entry else mal_id
    if added:
        console.print(f"[green]Added \"{title}\" to your reading list.[/green]")
    else:
        console.print(f"[yellow]\"{title}\" is already in your reading list.[/yellow]")


@readinglist.command("remove")
@click.argument("mal_id", type=int)
@click.pass_context
def remove_from_reading_list(ctx: click.Context, mal_id: int) -> None:
    """Removes manga MAL_ID from the reading list."""
    app = get_app(ctx)

    async def action(app):
        before = await app.bridge.get_reading_list()
        return find_entry(before, mal_id), await app.bridge.remove_from_reading_list(mal_id)

    removed, entries = run_bridge_action(app, action, "Failed to remove manga.")
    if removed:
        console.print(f"[green]Removed \"{removed.get('title')}\" ({len(entries)} left).[/green]")
    else:
        console.print(f"[yellow]Nothing with MAL ID {mal_id} is on your reading list.[/yellow]")


@readinglist.command("stats")
@click.pass_context
def reading_list_stats(ctx: click.Context) -> None:
    """Shows how much is on the reading list and how much is read."""
    app = get_app(ctx)

    async def action(app):
        return await app.bridge.get_reading_list()

    entries = run_bridge_action(app, action, "Failed to load reading list.")
    render_summary(ListKind.READINGLIST, summarize(ListKind.READINGLIST, entries))


async def update_locally(app: AppContext, mal_id: int, fields: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """
    Applies a reading-list edit without a bridge request. Local bridges take
    it directly; behind a remote bridge it goes straight to the list files.
    """
    if isinstance(app.bridge, KindBridge):
        return await app.bridge.update(ListKind.READINGLIST, mal_id, fields)
    return await app.store.update(ListKind.READINGLIST, mal_id, fields)


@readinglist.command("update")
@click.argument("mal_id", type=int)
@click.option("--status", type=click.Choice(READ_STATUSES), help="New read status.")
@click.option("--chapters", "chapters_read", type=click.IntRange(min=0), help="Chapters read so far.")
@click.option("--rating", type=click.FloatRange(MIN_PERSONAL_RATING, MAX_PERSONAL_RATING), help="Your rating, 0-10.")
@click.option("--notes", help="Free-text notes (replaces existing notes).")
@click.pass_context
def update_reading_list(
    ctx: click.Context,
    mal_id: int,
    status: Optional[str],
    chapters_read: Optional[int],
    rating: Optional[float],
    notes: Optional[str]
) -> None:
    """Updates progress on manga MAL_ID. Only the options you pass are changed."""
    fields = {
        key: value
        for key, value in (
            ("status", status),
            ("chapters_read", chapters_read),
            ("rating", rating),
            ("notes", notes),
        )
        if value is not None
    }
    if not fields:
        raise click.UsageError("Nothing to update; pass at least one of --status, --chapters, --rating, --notes.")

    logger.info(f"Reading list update started (mal_id={mal_id}, fields={fields})")
    app = get_app(ctx)

    async def action(app):
        return await update_locally(app, mal_id, fields)

    entries = run_bridge_action(app, action, "Failed to update manga.")
    entry = find_entry(entries, mal_id)
    if entry is None:
        console.print(f"[yellow]Nothing with MAL ID {mal_id} is on your reading list.[/yellow]")
        return
    console.print(f"[green]Updated \"{entry.get('title')}\".[/green]")
    render_entries(ListKind.READINGLIST, [entry])
