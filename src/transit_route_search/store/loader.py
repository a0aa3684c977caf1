"""Import agencies and routes from a GTFS static feed."""

import csv
import io
import logging
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

from ..core.exceptions import FeedLoadError
from ..core.models import StoredAgency, StoredRoute
from .database import RouteStore

logger = logging.getLogger(__name__)

AGENCY_REQUIRED_COLUMNS = ("agency_name", "agency_url", "agency_timezone")
ROUTE_REQUIRED_COLUMNS = ("route_id", "route_type")


@contextmanager
def _open_feed_file(feed_path: Path, name: str) -> Iterator[TextIO]:
    """Open ``name`` from a feed directory or zip archive as text."""
    if feed_path.is_dir():
        file_path = feed_path / name
        if not file_path.exists():
            raise FeedLoadError(f"Feed is missing {name}: {feed_path}")
        # utf-8-sig strips the BOM many feed exporters write
        with open(file_path, encoding="utf-8-sig", newline="") as f:
            yield f
        return

    if not zipfile.is_zipfile(feed_path):
        raise FeedLoadError(f"Not a GTFS directory or zip file: {feed_path}")

    with zipfile.ZipFile(feed_path) as archive:
        try:
            raw = archive.open(name)
        except KeyError as e:
            raise FeedLoadError(f"Feed is missing {name}: {feed_path}") from e
        with raw, io.TextIOWrapper(raw, encoding="utf-8-sig", newline="") as f:
            yield f


def _read_rows(
    feed_path: Path, name: str, required: tuple[str, ...]
) -> list[dict[str, str]]:
    with _open_feed_file(feed_path, name) as f:
        reader = csv.DictReader(f)
        columns = [c.strip() for c in reader.fieldnames or []]
        missing = [c for c in required if c not in columns]
        if missing:
            raise FeedLoadError(f"{name} is missing columns: {', '.join(missing)}")
        # Surplus values on a short-header row land under the None key
        return [
            {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}
            for row in reader
        ]


def parse_agencies(rows: list[dict[str, str]], default_agency_id: str) -> list[StoredAgency]:
    """Build agency rows, filling in the id for single-agency feeds."""
    if len(rows) > 1 and any(not row.get("agency_id") for row in rows):
        raise FeedLoadError("agency_id is required when a feed has several agencies")

    agencies = []
    seen: set[str] = set()
    # Line 1 is the header
    for line_no, row in enumerate(rows, 2):
        agency_id = row.get("agency_id") or default_agency_id
        if agency_id in seen:
            raise FeedLoadError(
                f"agency.txt line {line_no}: duplicate agency_id '{agency_id}'"
            )
        seen.add(agency_id)
        agencies.append(
            StoredAgency(
                agency_id=agency_id,
                name=row["agency_name"],
                url=row["agency_url"],
                timezone=row["agency_timezone"],
                lang=row.get("agency_lang") or None,
                phone=row.get("agency_phone") or None,
                fare_url=row.get("agency_fare_url") or None,
                email=row.get("agency_email") or None,
            )
        )

    return agencies


def parse_routes(
    rows: list[dict[str, str]], agencies: list[StoredAgency]
) -> list[StoredRoute]:
    """Build route rows, resolving the owning agency of each route."""
    known_ids = {agency.agency_id for agency in agencies}
    sole_agency_id = agencies[0].agency_id if len(agencies) == 1 else None

    routes = []
    seen: set[tuple[str, str]] = set()
    # Line 1 is the header
    for line_no, row in enumerate(rows, 2):
        agency_id = row.get("agency_id") or sole_agency_id
        if not agency_id:
            raise FeedLoadError(f"routes.txt line {line_no}: agency_id is required")
        if agency_id not in known_ids:
            raise FeedLoadError(
                f"routes.txt line {line_no}: unknown agency_id '{agency_id}'"
            )

        try:
            route_type = int(row["route_type"])
        except ValueError as e:
            raise FeedLoadError(
                f"routes.txt line {line_no}: invalid route_type '{row['route_type']}'"
            ) from e

        key = (agency_id, row["route_id"])
        if key in seen:
            raise FeedLoadError(
                f"routes.txt line {line_no}: duplicate route_id '{row['route_id']}' "
                f"for agency '{agency_id}'"
            )
        seen.add(key)

        routes.append(
            StoredRoute(
                route_id=row["route_id"],
                agency_id=agency_id,
                short_name=row.get("route_short_name") or None,
                long_name=row.get("route_long_name") or None,
                description=row.get("route_desc") or None,
                route_type=route_type,
                url=row.get("route_url") or None,
                color=row.get("route_color") or None,
                text_color=row.get("route_text_color") or None,
            )
        )

    return routes


def load_gtfs_feed(
    feed_path: str | Path, store: RouteStore, default_agency_id: str | None = None
) -> tuple[int, int]:
    """Replace the store's agencies and routes with those of a GTFS feed.

    Args:
        feed_path: GTFS directory or zip archive
        store: Destination store (created if needed)
        default_agency_id: Id for a single agency that has none; defaults to
            the feed's file name without extension

    Returns:
        Tuple of (agency count, route count)

    Raises:
        FeedLoadError: If the feed is missing files or has malformed rows
    """
    feed_path = Path(feed_path)
    if not feed_path.exists():
        raise FeedLoadError(f"Feed not found: {feed_path}")

    logger.info(f"Loading GTFS feed from {feed_path}")

    agency_rows = _read_rows(feed_path, "agency.txt", AGENCY_REQUIRED_COLUMNS)
    if not agency_rows:
        raise FeedLoadError("agency.txt has no agencies")
    agencies = parse_agencies(agency_rows, default_agency_id or feed_path.stem)

    route_rows = _read_rows(feed_path, "routes.txt", ROUTE_REQUIRED_COLUMNS)
    routes = parse_routes(route_rows, agencies)

    store.initialize()
    store.replace_all(agencies, routes)

    logger.info(f"Loaded {len(agencies)} agencies and {len(routes)} routes")
    return len(agencies), len(routes)
