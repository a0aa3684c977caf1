"""Custom exceptions for transit route search."""


class TransitSearchError(Exception):
    """Base exception for transit route search errors."""

    pass


class ValidationError(TransitSearchError):
    """Raised when a request parameter fails validation.

    Attributes:
        field: Name of the offending request parameter
        message: Caller-facing message for that parameter
    """

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message

    def to_field_errors(self) -> dict[str, list[str]]:
        """Return the error in the ``fieldErrors`` response shape."""
        return {self.field: [self.message]}


class AuthError(TransitSearchError):
    """Raised when the API key is missing or not recognised."""

    pass


class CanceledRequestError(TransitSearchError):
    """Raised when the caller went away before the store query started."""

    pass


class UpstreamQueryError(TransitSearchError):
    """Raised when the route store fails to answer a query."""

    pass


class StoreNotFoundError(TransitSearchError):
    """Raised when the route store database file does not exist."""

    pass


class FeedLoadError(TransitSearchError):
    """Raised when a GTFS feed cannot be imported."""

    pass
