"""Route search: bounded store lookup, truncation detection and references."""

import logging
from collections.abc import Iterable, Sequence
from typing import TypeVar

from .exceptions import ValidationError
from .models import (
    Agency,
    FieldError,
    References,
    Route,
    RouteSearchResult,
    RouteType,
    SearchExpression,
    StoredAgency,
    StoredRoute,
    form_combined_id,
)
from .query import build_search_expression, parse_max_count

logger = logging.getLogger(__name__)

T = TypeVar("T")


def trim_to_limit(rows: Sequence[T], limit: int) -> tuple[list[T], bool]:
    """Drop the over-fetched row, if any.

    Returns:
        Tuple of (at most ``limit`` rows in store order, whether rows were dropped)
    """
    limit_exceeded = len(rows) > limit
    return list(rows[:limit]), limit_exceeded


def build_route(row: StoredRoute) -> Route:
    """Convert a store row into the public route model."""
    short_name = row.short_name or ""
    long_name = row.long_name or ""
    return Route(
        id=form_combined_id(row.agency_id, row.route_id),
        agency_id=row.agency_id,
        short_name=short_name,
        long_name=long_name,
        description=row.description or "",
        route_type=RouteType.coerce(row.route_type),
        url=row.url or "",
        color=row.color or "",
        text_color=row.text_color or "",
        null_safe_short_name=short_name or long_name,
    )


def filter_agencies(
    agencies: Iterable[StoredAgency], agency_ids: set[str]
) -> list[Agency]:
    """Keep catalog agencies whose id is referenced, each exactly once."""
    seen: set[str] = set()
    result = []
    for agency in agencies:
        if agency.agency_id in agency_ids and agency.agency_id not in seen:
            seen.add(agency.agency_id)
            result.append(Agency.from_stored(agency))
    return result


class RouteSearcher:
    """Runs route searches against a route store."""

    def __init__(self, store) -> None:
        """Initialize the searcher.

        Args:
            store: Object providing ``search_routes_by_name`` and ``get_agencies``
        """
        self.store = store

    def search(self, expression: SearchExpression, limit: int) -> RouteSearchResult:
        """Search routes matching an already sanitized expression.

        One extra row is requested so truncation can be reported without a
        count query.

        Raises:
            UpstreamQueryError: If the store fails
        """
        rows = self.store.search_routes_by_name(expression, limit + 1)
        rows, limit_exceeded = trim_to_limit(rows, limit)

        routes = []
        agency_ids: set[str] = set()
        for row in rows:
            agency_ids.add(row.agency_id)
            routes.append(build_route(row))

        agencies = filter_agencies(self.store.get_agencies(agency_ids), agency_ids)

        logger.debug(
            f"Route search {expression.expression!r}: {len(routes)} routes, "
            f"{len(agencies)} agencies, limit_exceeded={limit_exceeded}"
        )

        return RouteSearchResult(
            routes=routes,
            limit_exceeded=limit_exceeded,
            references=References(agencies=agencies),
        )

    def search_text(
        self, raw_input: str | None, raw_max_count: str | None = None
    ) -> RouteSearchResult:
        """Validate raw parameters and search.

        Raises:
            ValidationError: If ``raw_input`` or ``raw_max_count`` is invalid
            UpstreamQueryError: If the store fails
        """
        expression = build_search_expression(raw_input)
        if isinstance(expression, FieldError):
            raise ValidationError(expression.field, expression.message)

        limit = parse_max_count(raw_max_count)
        if isinstance(limit, FieldError):
            raise ValidationError(limit.field, limit.message)

        return self.search(expression, limit)
