"""Transit Route Search Package

Route search over a GTFS-derived SQLite store, served as a
OneBusAway-style JSON API and a command line tool.
"""

__version__ = "0.1.0"

from .core.models import Agency, Route, RouteSearchResult
from .core.search import RouteSearcher

__all__ = ["Agency", "Route", "RouteSearchResult", "RouteSearcher"]
