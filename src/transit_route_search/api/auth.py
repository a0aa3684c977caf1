"""API key check."""

import logging

from fastapi import Request

from ..core.exceptions import AuthError

logger = logging.getLogger(__name__)


async def require_api_key(request: Request) -> str:
    """FastAPI dependency accepting only configured ``key`` values.

    Raises:
        AuthError: If the key is missing or unknown
    """
    key = request.query_params.get("key")
    if not key or key not in request.app.state.settings.api_keys:
        logger.debug(f"Rejected API key for {request.url.path}")
        raise AuthError("permission denied")
    return key
