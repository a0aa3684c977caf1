"""Route search endpoint."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from ..core.exceptions import CanceledRequestError
from ..core.models import FieldError
from ..core.query import build_search_expression, parse_max_count
from ..core.search import RouteSearcher
from .auth import require_api_key
from .responses import ok_response, validation_error_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search"])


@router.get(
    "/api/where/search/route.json",
    summary="Search routes by name",
    dependencies=[Depends(require_api_key)],
)
async def search_route(request: Request) -> JSONResponse:
    """Search routes by short name, long name or description.

    Parameters are read straight from the query string so that bad values
    are reported in the ``fieldErrors`` shape.
    """
    params = request.query_params

    expression = build_search_expression(params.get("input"))
    if isinstance(expression, FieldError):
        logger.debug(f"Rejected input: {expression.message}")
        return validation_error_response(expression.to_field_errors())

    limit = parse_max_count(params.get("maxCount"))
    if isinstance(limit, FieldError):
        logger.debug(f"Rejected maxCount {params.get('maxCount')!r}")
        return validation_error_response(limit.to_field_errors())

    # Checked once; a query already in flight is not interrupted.
    if await request.is_disconnected():
        raise CanceledRequestError("Client disconnected before route search")

    searcher: RouteSearcher = request.app.state.searcher
    result = await run_in_threadpool(searcher.search, expression, limit)

    return ok_response(result.to_json_dict())
