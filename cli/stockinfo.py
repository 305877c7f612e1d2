#!/usr/bin/env python3
"""
stockinfo - CLI tool for the StockInfo web application
"""
from pathlib import Path
import typer
from rich.console import Console
from dotenv import load_dotenv
from cli.commands import db, server

# Load .env file from project root
project_root = Path(__file__).parent.parent
dotenv_path = project_root / ".env"
load_dotenv(dotenv_path)

console = Console()
app = typer.Typer(
    name="stockinfo",
    help="CLI for StockInfo - initialize the database, manage accounts, and run the server",
    add_completion=False,
)

# Add command groups
app.add_typer(db.app, name="db", help="Database operations")

# Add standalone commands
app.command()(server.server)


if __name__ == "__main__":
    app()
