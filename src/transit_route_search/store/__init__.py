"""SQLite route store and GTFS feed import."""

from .database import RouteStore
from .loader import load_gtfs_feed

__all__ = ["RouteStore", "load_gtfs_feed"]
