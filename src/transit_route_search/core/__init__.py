"""Core route search functionality."""

from .exceptions import (
    AuthError,
    CanceledRequestError,
    FeedLoadError,
    StoreNotFoundError,
    TransitSearchError,
    UpstreamQueryError,
    ValidationError,
)
from .models import (
    Agency,
    FieldError,
    References,
    ResponseEnvelope,
    Route,
    RouteSearchResult,
    RouteType,
    SearchExpression,
)
from .query import build_search_expression, parse_max_count
from .search import RouteSearcher

__all__ = [
    "Agency",
    "FieldError",
    "References",
    "ResponseEnvelope",
    "Route",
    "RouteSearchResult",
    "RouteSearcher",
    "RouteType",
    "SearchExpression",
    "build_search_expression",
    "parse_max_count",
    "TransitSearchError",
    "ValidationError",
    "AuthError",
    "CanceledRequestError",
    "UpstreamQueryError",
    "StoreNotFoundError",
    "FeedLoadError",
]
