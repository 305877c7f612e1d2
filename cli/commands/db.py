"""
Database commands for stockinfo CLI
"""
from typing import Optional, Tuple

import typer
from rich.console import Console
from rich.table import Table

from auth import MIN_PASSWORD_LENGTH, Role, hash_password
from config import ConfigError, load_config
from database import AlreadyExistsError, Database, DatabaseUnavailableError, initialize_with_retry

console = Console()
app = typer.Typer(help="Database operations")


def _open_database(path: Optional[str]) -> Tuple[Database, dict]:
    try:
        config = load_config()
    except ConfigError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        raise typer.Exit(1)
    return Database(path or config['DATABASE_PATH']), config


@app.command()
def init(
    database: Optional[str] = typer.Option(None, "--database", "-d", help="SQLite file (defaults to DATABASE_PATH)"),
):
    """Create the schema and seed the admin account when no users exist"""
    db, config = _open_database(database)
    password = config.get('ADMIN_PASSWORD')

    console.print(f"[bold blue]🗄️  Initializing database at {db.path}...[/bold blue]")
    try:
        initialize_with_retry(lambda: db.setup(
            admin_username=config['ADMIN_USERNAME'],
            admin_email=config['ADMIN_EMAIL'],
            admin_password_hash=hash_password(password) if password else None,
        ))
    except Exception as e:
        console.print(f"[bold red]✗ Database initialization failed: {e}[/bold red]")
        raise typer.Exit(1)
    finally:
        db.close()

    console.print("[bold green]✓ Database ready[/bold green]")


@app.command("create-admin")
def create_admin(
    username: str = typer.Option(..., prompt=True, help="Admin username"),
    email: str = typer.Option(..., prompt=True, help="Admin email"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Admin password"),
    full_name: str = typer.Option("Administrator", help="Display name"),
    database: Optional[str] = typer.Option(None, "--database", "-d", help="SQLite file (defaults to DATABASE_PATH)"),
):
    """Create an additional admin account"""
    if len(password) < MIN_PASSWORD_LENGTH:
        console.print(f"[bold red]✗ Password must be at least {MIN_PASSWORD_LENGTH} characters[/bold red]")
        raise typer.Exit(1)

    db, _ = _open_database(database)
    try:
        db.init_schema()
        user = db.create_user(username, email, full_name,
                              password_hash=hash_password(password), role=Role.ADMIN.value)
    except AlreadyExistsError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        raise typer.Exit(1)
    except DatabaseUnavailableError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        raise typer.Exit(1)
    finally:
        db.close()

    console.print(f"[bold green]✓ Created admin '{user['username']}' (id {user['id']})[/bold green]")


@app.command()
def users(
    database: Optional[str] = typer.Option(None, "--database", "-d", help="SQLite file (defaults to DATABASE_PATH)"),
):
    """List user accounts"""
    db, _ = _open_database(database)
    try:
        db.init_schema()
        rows = db.get_all_users()
    except DatabaseUnavailableError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        raise typer.Exit(1)
    finally:
        db.close()

    if not rows:
        console.print("[yellow]No users found[/yellow]")
        return

    table = Table(title="Users")
    table.add_column("ID", justify="right")
    table.add_column("Username")
    table.add_column("Email")
    table.add_column("Role")
    table.add_column("Last login")

    for row in rows:
        table.add_row(
            str(row['id']),
            row['username'],
            row['email'],
            row['role'],
            row['last_login'] or "-",
        )

    console.print(table)
