"""JSON response shapes shared by every endpoint."""

from typing import Any

from fastapi.responses import JSONResponse

from ..core.models import ResponseEnvelope


def _envelope_response(envelope: ResponseEnvelope, **kwargs: Any) -> JSONResponse:
    return JSONResponse(
        content=envelope.to_json_dict(), status_code=envelope.code, **kwargs
    )


def ok_response(data: Any) -> JSONResponse:
    """200 envelope wrapping ``data``."""
    return _envelope_response(ResponseEnvelope.ok(data))


def validation_error_response(field_errors: dict[str, list[str]]) -> JSONResponse:
    """400 response in the ``fieldErrors`` shape (no envelope)."""
    return JSONResponse(content={"fieldErrors": field_errors}, status_code=400)


def unauthorized_response() -> JSONResponse:
    return _envelope_response(ResponseEnvelope(code=401, text="permission denied"))


def rate_limited_response(retry_after: int) -> JSONResponse:
    return _envelope_response(
        ResponseEnvelope(code=429, text="rate limit exceeded"),
        headers={"Retry-After": str(retry_after)},
    )


def server_error_response() -> JSONResponse:
    """500 envelope; never carries the underlying error text."""
    return _envelope_response(ResponseEnvelope(code=500, text="internal server error"))
