"""SQLite route store with an FTS5 index over route names."""

import logging
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from ..core.exceptions import StoreNotFoundError, UpstreamQueryError
from ..core.models import SearchExpression, StoredAgency, StoredRoute

logger = logging.getLogger(__name__)

_ROUTE_COLUMNS = (
    "route_id",
    "agency_id",
    "short_name",
    "long_name",
    "description",
    "route_type",
    "url",
    "color",
    "text_color",
)

_AGENCY_COLUMNS = (
    "agency_id",
    "name",
    "url",
    "timezone",
    "lang",
    "phone",
    "fare_url",
    "email",
)

SEARCH_ROUTES_BY_NAME = f"""
    SELECT {', '.join(f'r.{col}' for col in _ROUTE_COLUMNS)}
    FROM routes_fts
    JOIN routes r ON r.rowid = routes_fts.rowid
    WHERE routes_fts MATCH ?
    ORDER BY bm25(routes_fts), r.agency_id, r.route_id
    LIMIT ?
"""


class RouteStore:
    """Read/write access to the route database.

    Every call opens its own short-lived connection, so one store instance
    can be shared between request threads.
    """

    def __init__(self, db_path: str | Path, must_exist: bool = True):
        """Initialize the store.

        Args:
            db_path: Path to the SQLite database file
            must_exist: Raise StoreNotFoundError if the file is missing
        """
        self.db_path = Path(db_path)
        if must_exist and not self.db_path.exists():
            raise StoreNotFoundError(f"Route database not found: {self.db_path}")

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, committing on success."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create tables and the search index if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self.connect() as conn:
            cursor = conn.cursor()

            cursor.execute("""
            CREATE TABLE IF NOT EXISTS agencies (
                agency_id   TEXT PRIMARY KEY,
                name        TEXT NOT NULL,
                url         TEXT NOT NULL DEFAULT '',
                timezone    TEXT NOT NULL DEFAULT '',
                lang        TEXT,
                phone       TEXT,
                fare_url    TEXT,
                email       TEXT
            )""")

            cursor.execute("""
            CREATE TABLE IF NOT EXISTS routes (
                route_id    TEXT NOT NULL,
                agency_id   TEXT NOT NULL,
                short_name  TEXT,
                long_name   TEXT,
                description TEXT,
                route_type  INTEGER NOT NULL DEFAULT 3,
                url         TEXT,
                color       TEXT,
                text_color  TEXT,
                PRIMARY KEY (agency_id, route_id),
                FOREIGN KEY (agency_id) REFERENCES agencies(agency_id)
            )""")
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_routes_agency ON routes(agency_id)"
            )

            # External-content index; rebuilt after each import
            cursor.execute("""
            CREATE VIRTUAL TABLE IF NOT EXISTS routes_fts USING fts5(
                short_name,
                long_name,
                description,
                content='routes',
                content_rowid='rowid',
                tokenize='unicode61 remove_diacritics 2'
            )""")

        logger.info(f"Route database initialized at {self.db_path}")

    def search_routes_by_name(
        self, search_term: SearchExpression | str, max_count: int
    ) -> list[StoredRoute]:
        """Run one FTS5 query against route names and descriptions.

        Args:
            search_term: Sanitized MATCH expression
            max_count: Maximum number of rows to return

        Returns:
            Matching routes, best match first

        Raises:
            UpstreamQueryError: If SQLite rejects or fails the query
        """
        try:
            with self.connect() as conn:
                rows = conn.execute(
                    SEARCH_ROUTES_BY_NAME, (str(search_term), max_count)
                ).fetchall()
        except sqlite3.Error as e:
            raise UpstreamQueryError(f"Route search query failed: {e}") from e

        return [StoredRoute(**dict(row)) for row in rows]

    def get_agencies(self, agency_ids: Iterable[str] | None = None) -> list[StoredAgency]:
        """Return agencies in catalog order, optionally restricted to ``agency_ids``."""
        query = f"SELECT {', '.join(_AGENCY_COLUMNS)} FROM agencies"
        params: tuple[str, ...] = ()

        if agency_ids is not None:
            params = tuple(agency_ids)
            if not params:
                return []
            placeholders = ", ".join("?" for _ in params)
            query += f" WHERE agency_id IN ({placeholders})"
        query += " ORDER BY rowid"

        try:
            with self.connect() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise UpstreamQueryError(f"Agency lookup failed: {e}") from e

        return [StoredAgency(**dict(row)) for row in rows]

    def replace_all(
        self, agencies: list[StoredAgency], routes: list[StoredRoute]
    ) -> None:
        """Replace the stored agencies and routes and rebuild the search index."""
        agency_sql = (
            f"INSERT INTO agencies ({', '.join(_AGENCY_COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in _AGENCY_COLUMNS)})"
        )
        route_sql = (
            f"INSERT INTO routes ({', '.join(_ROUTE_COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in _ROUTE_COLUMNS)})"
        )

        with self.connect() as conn:
            conn.execute("DELETE FROM routes")
            conn.execute("DELETE FROM agencies")
            conn.executemany(
                agency_sql,
                [tuple(getattr(a, col) for col in _AGENCY_COLUMNS) for a in agencies],
            )
            conn.executemany(
                route_sql,
                [tuple(getattr(r, col) for col in _ROUTE_COLUMNS) for r in routes],
            )
            conn.execute("INSERT INTO routes_fts(routes_fts) VALUES('rebuild')")

        logger.info(
            f"Stored {len(agencies)} agencies and {len(routes)} routes in {self.db_path}"
        )

    def count_routes(self) -> int:
        """Return the number of stored routes."""
        with self.connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM routes").fetchone()[0]
