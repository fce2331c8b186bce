"""
Catalog commands for AniToWatch CLI.

Browse the Jikan catalog: search, top charts, the current season, genre
listings and single-title details. These never touch the personal lists.
"""
import sys
import click
import logging
from typing import Any, Callable, Optional
from rich.table import Table
from rich import box

from .base import console, get_app, render_catalog, render_character, render_record
from ..app import AppContext
from ..constants import (
    CATALOG_KINDS,
    JIKAN_BROWSE_PAGE_LIMIT,
    JIKAN_SEASON_LIMIT,
    JIKAN_TOP_LIMIT,
)
from ..jikan import CatalogPage, JikanClient, ORDER_FIELDS
from ..logging import APIError, ValidationError

logger = logging.getLogger(__name__)

ALL_ORDER_FIELDS = sorted(set().union(*ORDER_FIELDS.values()))


def _catalog_call(app: AppContext, call: Callable[[JikanClient], Any]) -> Any:
    """Runs one catalog request, printing an error state instead of a traceback."""
    try:
        return call(app.catalog)
    except (APIError, ValidationError) as e:
        logger.error(f"Catalog request failed: {e}")
        console.print(f"[red]Could not load data from Jikan: {e}[/red]")
        sys.exit(1)
    finally:
        app.catalog.close()


def _page_footer(page: CatalogPage) -> None:
    if page.has_next_page:
        console.print(f"[dim]Page {page.current_page} of {page.last_visible_page}; use --page {page.current_page + 1} for more.[/dim]")


@click.command()
@click.argument("query")
@click.option("--type", "kind", type=click.Choice(CATALOG_KINDS), default="anime", help="What to search for.")
@click.option("--page", type=click.IntRange(min=1), default=1, help="Result page.")
@click.option("--limit", type=click.IntRange(1, 25), default=None, help="Results per page.")
@click.pass_context
def search(ctx: click.Context, query: str, kind: str, page: int, limit: Optional[int]) -> None:
    """Searches the Jikan catalog for QUERY."""
    logger.info(f"Search command started (query={query}, type={kind}, page={page})")
    app = get_app(ctx)
    result = _catalog_call(app, lambda client: client.search(kind, query, page=page, limit=limit))
    render_catalog(kind, result.items, f"Search: '{query}' ({kind})")
    _page_footer(result)


@click.command()
@click.argument("kind", type=click.Choice(("anime", "manga")))
@click.option("--limit", type=click.IntRange(1, 25), default=JIKAN_TOP_LIMIT, help="How many titles to show.")
@click.pass_context
def top(ctx: click.Context, kind: str, limit: int) -> None:
    """Shows the top-rated anime or manga."""
    app = get_app(ctx)
    result = _catalog_call(app, lambda client: client.top(kind, limit=limit))
    render_catalog(kind, result.items, f"Top {kind.capitalize()}")


@click.command()
@click.option("--limit", type=click.IntRange(1, 25), default=JIKAN_SEASON_LIMIT, help="How many titles to show.")
@click.pass_context
def season(ctx: click.Context, limit: int) -> None:
    """Shows anime airing this season."""
    app = get_app(ctx)
    result = _catalog_call(app, lambda client: client.season_now(limit=limit))
    render_catalog("anime", result.items, "Airing This Season")


@click.command()
@click.argument("kind", type=click.Choice(CATALOG_KINDS))
@click.option("--page", type=click.IntRange(min=1), default=1, help="Result page.")
@click.option("--limit", type=click.IntRange(1, 25), default=JIKAN_BROWSE_PAGE_LIMIT, help="Results per page.")
@click.option("--genre", type=int, default=None, help="Genre id (see 'anitowatch genres').")
@click.option("--order-by", type=click.Choice(ALL_ORDER_FIELDS), default=None, help="Ordering field.")
@click.pass_context
def browse(ctx: click.Context, kind: str, page: int, limit: int, genre: Optional[int], order_by: Optional[str]) -> None:
    """Lists a catalog page by page, optionally by genre and ordering."""
    app = get_app(ctx)
    result = _catalog_call(
        app,
        lambda client: client.browse(kind, page=page, limit=limit, genre=genre, order_by=order_by)
    )
    render_catalog(kind, result.items, f"Browse {kind.capitalize()}")
    _page_footer(result)


@click.command()
@click.argument("kind", type=click.Choice(("anime", "manga")))
@click.pass_context
def genres(ctx: click.Context, kind: str) -> None:
    """Lists the genre ids usable with 'browse --genre'."""
    app = get_app(ctx)
    items = _catalog_call(app, lambda client: client.genres(kind))

    table = Table(title=f"{kind.capitalize()} Genres", box=box.ROUNDED)
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Genre", style="white")
    table.add_column("Titles", justify="right", style="dim")
    for item in sorted(items, key=lambda g: str(g.get("name") or "")):
        table.add_row(str(item.get("mal_id")), str(item.get("name") or "?"), str(item.get("count") or ""))
    console.print(table)


@click.command()
@click.argument("kind", type=click.Choice(CATALOG_KINDS))
@click.argument("mal_id", type=int)
@click.pass_context
def show(ctx: click.Context, kind: str, mal_id: int) -> None:
    """Shows details for one anime, manga or character (with voice actors)."""
    app = get_app(ctx)
    if kind == "characters":
        record, voices = _catalog_call(
            app,
            lambda client: (client.get(kind, mal_id, full=True), client.character_voices(mal_id))
        )
        render_character(record, voices)
        return
    record = _catalog_call(app, lambda client: client.get(kind, mal_id, full=True))
    render_record(kind, record)
