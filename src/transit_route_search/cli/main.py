"""CLI main entry point for transit route search."""

import sys
from pathlib import Path

import click
from rich.console import Console

from .. import __version__
from ..config import Settings, configure_logging
from ..core import (
    FeedLoadError,
    RouteSearcher,
    StoreNotFoundError,
    TransitSearchError,
    UpstreamQueryError,
    ValidationError,
)
from ..store import RouteStore, load_gtfs_feed
from .formatters import format_result_json, format_routes_table

console = Console()
error_console = Console(stderr=True)

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Route database file (default: $ROUTE_SEARCH_DB_PATH or data/routes.db)",
)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Transit Route Search - Search GTFS routes by name."""
    configure_logging("DEBUG" if verbose else Settings.from_env().log_level)


@cli.command()
@click.argument("feed", type=click.Path(exists=True, path_type=Path))
@db_option
@click.option(
    "--agency-id",
    help="Agency id for single-agency feeds that omit agency_id",
)
def load(feed: Path, db_path: Path | None, agency_id: str | None) -> None:
    """Import agencies and routes from a GTFS feed (directory or zip).

    Examples:
        route-search load google_transit.zip
        route-search load ./gtfs --db data/routes.db
    """
    settings = Settings.from_env(db_path=db_path)
    try:
        with console.status(f"[bold green]Loading {feed}..."):
            store = RouteStore(settings.db_path, must_exist=False)
            agencies, routes = load_gtfs_feed(feed, store, default_agency_id=agency_id)
    except FeedLoadError as e:
        error_console.print(f"[red]Feed error:[/red] {e}")
        sys.exit(1)

    console.print(
        f"[green]Loaded {agencies} agencies and {routes} routes into "
        f"{settings.db_path}[/green]"
    )


@cli.command()
@click.argument("query")
@db_option
@click.option(
    "--max-count",
    "-n",
    "max_count",
    help="Maximum number of routes (1-20, default 20)",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.option("--details", "-d", is_flag=True, help="Show description and color")
def search(
    query: str,
    db_path: Path | None,
    max_count: str | None,
    output_format: str,
    details: bool,
) -> None:
    """Search routes by short name, long name or description.

    Examples:
        route-search search "44"
        route-search search "crosstown express" --max-count 5
        route-search search "rapid" --format json
    """
    settings = Settings.from_env(db_path=db_path)
    try:
        searcher = RouteSearcher(RouteStore(settings.db_path))
        result = searcher.search_text(query, max_count)
    except ValidationError as e:
        error_console.print(f"[red]Invalid {e.field}:[/red] {e.message}")
        sys.exit(1)
    except StoreNotFoundError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        error_console.print("Run 'route-search load FEED' first.")
        sys.exit(1)
    except UpstreamQueryError as e:
        error_console.print(f"[red]Search failed:[/red] {e}")
        sys.exit(1)

    if output_format == "json":
        click.echo(format_result_json(result))
    else:
        format_routes_table(result, verbose=details)


@cli.command()
@db_option
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", "-p", default=8080, type=int, help="Bind port")
def serve(db_path: Path | None, host: str, port: int) -> None:
    """Run the HTTP API."""
    import uvicorn

    from ..api import create_app

    settings = Settings.from_env(db_path=db_path)
    try:
        app = create_app(settings)
    except TransitSearchError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    cli()
