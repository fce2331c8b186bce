import logging
import click
from typing import Optional
from dotenv import load_dotenv, find_dotenv

# Load environment variables immediately
load_dotenv(find_dotenv())

from .app import AppContext
from .config import setup_config
from .constants import BRIDGE_MODES
from .logging import setup_logging, set_log_level, verbosity_to_level
from .cli.watchlist import watchlist
from .cli.readinglist import readinglist
from .cli.favorites import favorites
from .cli.catalog import search, top, season, browse, genres, show
from .cli.serve import serve

logger = logging.getLogger(__name__)


@click.group()
@click.option("--data-dir", type=click.Path(file_okay=False), default=None, help="Directory holding the list files.")
@click.option("--bridge", "bridge_mode", type=click.Choice(BRIDGE_MODES), default=None, help="How list operations reach storage.")
@click.option("-v", "--verbose", count=True, help="Show more log output (-v info, -vv debug).")
@click.pass_context
def cli(ctx: click.Context, data_dir: Optional[str], bridge_mode: Optional[str], verbose: int) -> None:
    """AniToWatch: track anime to watch, manga to read and favorite characters."""
    if ctx.obj is None:
        config = setup_config(data_dir=data_dir, bridge_mode=bridge_mode, verbose=verbose > 0)
        setup_logging(
            config.logging.file,
            file_level=config.logging.file_level,
            console_level=config.logging.console_level,
            force=True
        )
        ctx.obj = AppContext(config)
    if verbose:
        set_log_level(verbosity_to_level(verbose), "console", clean=verbose == 1)
    logger.debug(f"CLI started (data_dir={ctx.obj.config.storage.data_dir}, bridge={ctx.obj.config.bridge.mode})")


cli.add_command(watchlist)
cli.add_command(readinglist)
cli.add_command(favorites)
cli.add_command(search)
cli.add_command(top)
cli.add_command(season)
cli.add_command(browse)
cli.add_command(genres)
cli.add_command(show)
cli.add_command(serve)


if __name__ == "__main__":
    cli()
