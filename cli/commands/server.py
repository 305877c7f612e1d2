# ABOUTME: CLI command for local development server management
# ABOUTME: Provides 'stockinfo server' to run the Flask dev server with the app's logging

from typing import Optional

import typer
from rich.console import Console

console = Console()


def server(
    port: Optional[int] = typer.Option(None, help="Port to listen on (defaults to PORT)"),
    host: str = typer.Option("127.0.0.1", help="Interface to bind"),
    debug: bool = typer.Option(False, help="Enable the Flask debugger and reloader"),
):
    """Start the Flask development server"""
    from app import create_app
    from config import ConfigError, load_config

    try:
        config = load_config()
    except ConfigError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        raise typer.Exit(1)

    try:
        flask_app = create_app(config)
    except Exception as e:
        console.print(f"[bold red]✗ Failed to start StockInfo: {e}[/bold red]")
        raise typer.Exit(1)

    port = port or config['PORT']
    console.print(f"[bold blue]🚀 Starting StockInfo on http://{host}:{port}[/bold blue]")
    flask_app.run(host=host, port=port, debug=debug)
