"""
Favorites commands for AniToWatch CLI.

Favorite characters are only added or removed; there is nothing to update.
"""
import click
import logging

from .base import (
    console,
    fetch_record,
    get_app,
    render_entries,
    run_bridge_action,
)
from ..constants import SORT_KEYS
from ..models import ListKind
from ..store import find_entry

logger = logging.getLogger(__name__)


@click.group()
def favorites() -> None:
    """Keep a list of favorite characters."""


@favorites.command("list")
@click.option("--sort", "sort_key", type=click.Choice(SORT_KEYS["favorites"]), default="added", help="Sort order (default: newest first).")
@click.pass_context
def list_favorites(ctx: click.Context, sort_key: str) -> None:
    """Shows favorite characters."""
    app = get_app(ctx)

    async def action(app):
        return await app.bridge.get_favorites()

    entries = run_bridge_action(app, action, "Failed to load favorites.")
    render_entries(ListKind.FAVORITES, entries, sort_key=sort_key)


@favorites.command("add")
@click.argument("mal_id", type=int)
@click.pass_context
def add_to_favorites(ctx: click.Context, mal_id: int) -> None:
    """Fetches character MAL_ID from Jikan and adds it to favorites."""
    logger.info(f"Favorites add started (mal_id={mal_id})")
    app = get_app(ctx)

    async def action(app):
        before = await app.bridge.get_favorites()
        if find_entry(before, mal_id):
            return before, False
        # The full record carries the anime the character appears in
        character = await fetch_record(app, "characters", mal_id, full=True)
        return await app.bridge.add_to_favorites(character), True

    entries, added = run_bridge_action(app, action, "Failed to add character.")
    entry = find_entry(entries, mal_id)
    name = entry.get("name") if entry else mal_id
    if added:
        console.print(f"[green]Added \"{name}\" to your favorites.[/green]")
    else:
        console.print(f"[yellow]\"{name}\" is already a favorite.[/yellow]")


@favorites.command("remove")
@click.argument("mal_id", type=int)
@click.pass_context
def remove_from_favorites(ctx: click.Context, mal_id: int) -> None:
    """Removes character MAL_ID from favorites."""
    app = get_app(ctx)

    async def action(app):
        before = await app.bridge.get_favorites()
        return find_entry(before, mal_id), await app.bridge.remove_from_favorites(mal_id)

    removed, entries = run_bridge_action(app, action, "Failed to remove character.")
    if removed:
        console.print(f"[green]Removed \"{removed.get('name')}\" ({len(entries)} left).[/green]")
    else:
        console.print(f"[yellow]Character {mal_id} is not a favorite.[/yellow]")
