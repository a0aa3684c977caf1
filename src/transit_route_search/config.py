"""Configuration for the route search service.

Settings are read from environment variables:

- ROUTE_SEARCH_DB_PATH: SQLite route database (default ``data/routes.db``)
- ROUTE_SEARCH_API_KEYS: comma-separated accepted API keys (default ``TEST``)
- ROUTE_SEARCH_RATE_LIMIT: requests per second per key, 0 disables (default 100)
- ROUTE_SEARCH_RATE_LIMIT_EXEMPT_KEYS: comma-separated keys never limited
- ROUTE_SEARCH_LOG_LEVEL: logging level name (default ``INFO``)
"""

import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _split_keys(value: str) -> set[str]:
    return {key.strip() for key in value.split(",") if key.strip()}


class Settings(BaseModel):
    """Service settings."""

    db_path: Path = Field(Path("data/routes.db"), description="Route database file")
    api_keys: set[str] = Field(
        default_factory=lambda: {"TEST"}, description="Accepted API keys"
    )
    rate_limit: int = Field(
        100, ge=0, description="Requests per window per caller, 0 disables"
    )
    rate_limit_window: float = Field(1.0, gt=0, description="Window in seconds")
    rate_limit_exempt_keys: set[str] = Field(
        default_factory=set, description="Keys that are never rate limited"
    )
    log_level: str = Field("INFO", description="Logging level name")

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """Build settings from the environment, then apply non-None overrides."""
        values: dict = {}

        if db_path := os.getenv("ROUTE_SEARCH_DB_PATH"):
            values["db_path"] = Path(db_path)
        if api_keys := os.getenv("ROUTE_SEARCH_API_KEYS"):
            values["api_keys"] = _split_keys(api_keys)
        if rate_limit := os.getenv("ROUTE_SEARCH_RATE_LIMIT"):
            values["rate_limit"] = int(rate_limit)
        if exempt := os.getenv("ROUTE_SEARCH_RATE_LIMIT_EXEMPT_KEYS"):
            values["rate_limit_exempt_keys"] = _split_keys(exempt)
        if log_level := os.getenv("ROUTE_SEARCH_LOG_LEVEL"):
            values["log_level"] = log_level.upper()

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def configure_logging(level: str | int = "INFO") -> None:
    """Configure root logging for the CLI and server."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
