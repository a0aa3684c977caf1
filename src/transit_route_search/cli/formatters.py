"""Output formatters for CLI display."""

import json

from rich.console import Console
from rich.table import Table

from ..core.models import RouteSearchResult, RouteType

console = Console()


def _route_type_label(code: RouteType | int) -> str:
    if isinstance(code, RouteType):
        return code.name.replace("_", " ").title()
    return str(code)


def format_routes_table(result: RouteSearchResult, verbose: bool = False) -> None:
    """Display a route search result as a rich table."""
    if not result.routes:
        console.print("No routes found.")
        return

    table = Table(title="Routes", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Long Name", style="green")
    table.add_column("Type", style="yellow")
    table.add_column("Agency", style="blue")
    if verbose:
        table.add_column("Description", style="dim")
        table.add_column("Color", style="dim")

    agency_names = {a.id: a.name for a in result.references.agencies}

    for route in result.routes:
        row_data = [
            route.id,
            route.null_safe_short_name or "-",
            route.long_name or "-",
            _route_type_label(route.route_type),
            agency_names.get(route.agency_id, route.agency_id),
        ]
        if verbose:
            row_data.append(route.description or "-")
            row_data.append(f"#{route.color}" if route.color else "-")
        table.add_row(*row_data)

    console.print(table)

    if result.limit_exceeded:
        console.print(
            f"[yellow]Showing first {len(result.routes)} matches; "
            "more routes match this query.[/yellow]"
        )


def format_result_json(result: RouteSearchResult) -> str:
    """Format a route search result as JSON in the API's ``data`` shape."""
    return json.dumps(result.to_json_dict(), ensure_ascii=False, indent=2)
