"""
TableBook CLI.

Command-line interface for common operations:
database setup, demo data, a quick look at venues and a health probe.
"""

import sys
import time

import httpx
import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from tablebook_shared.config.logging import setup_logging
from tablebook_shared.config.settings import settings
from tablebook_shared.infrastructure.db import engine, get_db_context
from tablebook_api.models import Base, Restaurant, Table as DiningTable
from tablebook_api.seed import seed
from tablebook_api.services.domain import StatsService

app = typer.Typer(
    name="tablebook",
    help="TableBook restaurant reservations CLI",
    add_completion=False,
)
console = Console()


@app.command()
def db_init():
    """Create all tables that do not exist yet."""
    console.print("[blue]Creating tables...[/blue]")
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        console.print(f"[red]✗ Table creation failed: {e}[/red]")
        raise typer.Exit(1)
    console.print("[green]✓ Tables ready[/green]")


@app.command()
def db_seed(
    force: bool = typer.Option(False, "--force", "-f", help="Allow seeding in production"),
):
    """Seed demo restaurants, staff and accounts."""
    if settings.is_production and not force:
        console.print("[red]Cannot seed production without --force[/red]")
        raise typer.Exit(1)

    try:
        with get_db_context() as db:
            seed(db)
    except SQLAlchemyError as e:
        console.print(f"[red]✗ Seeding failed: {e}[/red]")
        raise typer.Exit(1)
    console.print("[green]✓ Seed complete[/green]")


@app.command()
def restaurants(
    include_inactive: bool = typer.Option(False, "--all", "-a", help="Include inactive restaurants"),
):
    """List restaurants with their table counts."""
    with get_db_context() as db:
        query = select(Restaurant).order_by(Restaurant.name)
        if not include_inactive:
            query = query.where(Restaurant.is_active.is_(True))
        rows = db.scalars(query).all()

        table = Table(title="Restaurants")
        table.add_column("ID", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Cuisine")
        table.add_column("Hours")
        table.add_column("Tables", justify="right")
        table.add_column("Active")

        for restaurant in rows:
            table_count = len(db.scalars(
                select(DiningTable.id).where(DiningTable.restaurant_id == restaurant.id)
            ).all())
            table.add_row(
                str(restaurant.id),
                restaurant.name,
                restaurant.cuisine_type or "-",
                f"{restaurant.opening_time or '?'}-{restaurant.closing_time or '?'}",
                str(table_count),
                "✓" if restaurant.is_active else "✗",
            )

    console.print(table)


@app.command()
def stats():
    """Show platform-wide counters."""
    with get_db_context() as db:
        platform = StatsService(db).platform_stats()

    table = Table(title="Platform Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    for name, value in platform.model_dump().items():
        table.add_row(name.replace("_", " ").title(), str(value))

    console.print(table)


@app.command()
def health(
    url: str = typer.Option(
        f"http://localhost:{settings.rest_api_port}/api/health/detailed", help="Detailed health URL"
    ),
):
    """Probe a running API and show its dependency status."""
    started = time.monotonic()
    try:
        response = httpx.get(url, timeout=5.0)
    except httpx.HTTPError as e:
        console.print(f"[red]✗ {type(e).__name__}: {e}[/red]")
        raise typer.Exit(1)
    elapsed_ms = (time.monotonic() - started) * 1000

    body = response.json()
    rows = [("API", f"{body.get('status', '?')} ({elapsed_ms:.0f}ms)")]
    rows += [(name, check.get("status", "?")) for name, check in body.get("dependencies", {}).items()]
    rows += [
        (f"breaker:{name}", breaker.get("state", "?"))
        for name, breaker in body.get("circuit_breakers", {}).items()
    ]

    table = Table(title="Service Health")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    for row in rows:
        table.add_row(*row)
    console.print(table)

    if response.status_code != 200:
        raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(settings.rest_api_port, help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the REST API with uvicorn."""
    import uvicorn

    setup_logging()
    uvicorn.run("tablebook_api.main:app", host=host, port=port, reload=reload)


@app.command()
def version():
    """Show version information."""
    table = Table(title="TableBook Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("API", "1.0.0")
    table.add_row("Environment", settings.environment)
    table.add_row("Python", sys.version.split()[0])

    console.print(table)


if __name__ == "__main__":
    app()
