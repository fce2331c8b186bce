"""
Serve command for AniToWatch CLI.

Runs the bridge host so other processes can reach the list store with
--bridge remote.
"""
import asyncio
import click
import logging
from typing import Optional

from .base import console, get_app
from ..bridge import BridgeHost, StoreBridge

logger = logging.getLogger(__name__)


@click.command()
@click.option("--host", default=None, help="Address to listen on (default: BRIDGE_HOST or 127.0.0.1).")
@click.option("--port", type=click.IntRange(0, 65535), default=None, help="Port to listen on (default: BRIDGE_PORT or 8765).")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]) -> None:
    """Serves the list store over WebSocket until interrupted."""
    app = get_app(ctx)
    host = host or app.config.bridge.host
    port = app.config.bridge.port if port is None else port
    logger.info(f"Serve command started (host={host}, port={port}, data_dir={app.config.storage.data_dir})")

    bridge_host = BridgeHost(StoreBridge(app.store))
    console.print(f"[bold green]Serving lists from {app.config.storage.data_dir} on ws://{host}:{port}[/bold green]")
    console.print("[dim]Press Ctrl+C to stop.[/dim]")
    try:
        asyncio.run(bridge_host.serve_forever(host, port))
    except KeyboardInterrupt:
        console.print("\n[yellow]Bridge host stopped.[/yellow]")
    except OSError as e:
        logger.error(f"Bridge host failed: {e}")
        console.print(f"[red]Could not listen on {host}:{port}: {e}[/red]")
        ctx.exit(1)
    finally:
        app.catalog.close()
