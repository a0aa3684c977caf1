"""Data models for transit route search."""

import time
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Separator used by combined ids ("agencyId_routeId").
ID_SEPARATOR = "_"

API_VERSION = 2


def form_combined_id(agency_id: str, local_id: str) -> str:
    """Join an agency id and a feed-local id into the public identifier."""
    return f"{agency_id}{ID_SEPARATOR}{local_id}"


class RouteType(IntEnum):
    """GTFS basic route types."""

    TRAM = 0
    SUBWAY = 1
    RAIL = 2
    BUS = 3
    FERRY = 4
    CABLE_TRAM = 5
    AERIAL_LIFT = 6
    FUNICULAR = 7
    TROLLEYBUS = 11
    MONORAIL = 12

    @classmethod
    def coerce(cls, code: int | None) -> "RouteType | int":
        """Return the enum member for ``code``, or the raw code if unknown.

        Extended route types (100-1702) are valid GTFS but not modelled here,
        so they pass through as plain integers.
        """
        if code is None:
            return cls.BUS
        try:
            return cls(code)
        except ValueError:
            return int(code)


class CamelModel(BaseModel):
    """Base model that serializes field names in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self, **kwargs: Any) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, **kwargs)


class FieldError(BaseModel):
    """A caller-fixable problem with a single request parameter."""

    field: str = Field(..., description="Request parameter name")
    message: str = Field(..., description="Caller-facing message")

    def to_field_errors(self) -> dict[str, list[str]]:
        return {self.field: [self.message]}


class SearchExpression(BaseModel):
    """An FTS5 MATCH expression built only from sanitized prefix terms."""

    expression: str = Field(..., description="Rendered MATCH expression")
    terms: list[str] = Field(
        default_factory=list, description="Sanitized tokens, quotes removed"
    )

    def __str__(self) -> str:
        return self.expression


class StoredAgency(BaseModel):
    """Agency row as held by the route store."""

    agency_id: str
    name: str
    url: str
    timezone: str
    lang: str | None = None
    phone: str | None = None
    fare_url: str | None = None
    email: str | None = None


class StoredRoute(BaseModel):
    """Route row as held by the route store."""

    route_id: str
    agency_id: str
    short_name: str | None = None
    long_name: str | None = None
    description: str | None = None
    route_type: int | None = None
    url: str | None = None
    color: str | None = None
    text_color: str | None = None


class Agency(CamelModel):
    """Agency reference entry."""

    id: str = Field(..., description="Agency id")
    name: str = Field(..., description="Agency name")
    url: str = Field("", description="Agency website")
    timezone: str = Field("", description="IANA timezone name")
    lang: str = Field("", description="Primary language")
    phone: str = Field("", description="Contact phone number")
    email: str = Field("", description="Contact email")
    fare_url: str = Field("", description="Fare information URL")
    disclaimer: str = Field("", description="Agency disclaimer")
    private_service: bool = Field(False, description="Not open to the public")

    @classmethod
    def from_stored(cls, agency: StoredAgency) -> "Agency":
        return cls(
            id=agency.agency_id,
            name=agency.name,
            url=agency.url,
            timezone=agency.timezone,
            lang=agency.lang or "",
            phone=agency.phone or "",
            email=agency.email or "",
            fare_url=agency.fare_url or "",
        )


class Route(CamelModel):
    """A matched route as returned to API clients."""

    id: str = Field(..., description="Combined id: agencyId_routeId")
    agency_id: str = Field(..., description="Owning agency id")
    short_name: str = Field("", description="Short public name, e.g. '44'")
    long_name: str = Field("", description="Full public name")
    description: str = Field("", description="Route description")
    route_type: RouteType | int = Field(
        RouteType.BUS, alias="type", description="GTFS route type code"
    )
    url: str = Field("", description="Route information URL")
    color: str = Field("", description="Route color (hex, no '#')")
    text_color: str = Field("", description="Text color (hex, no '#')")
    null_safe_short_name: str = Field(
        "", description="Short name, falling back to the long name"
    )

    def __str__(self) -> str:
        name = self.null_safe_short_name or self.id
        if self.long_name and self.long_name != name:
            return f"{name} ({self.long_name})"
        return name


class References(CamelModel):
    """Related entities needed to render a result set."""

    agencies: list[Agency] = Field(default_factory=list)
    routes: list[Any] = Field(default_factory=list)
    situations: list[Any] = Field(default_factory=list)
    stop_times: list[Any] = Field(default_factory=list)
    stops: list[Any] = Field(default_factory=list)
    trips: list[Any] = Field(default_factory=list)


class RouteSearchResult(CamelModel):
    """Result of a route search: the page of routes plus references."""

    routes: list[Route] = Field(default_factory=list, alias="list")
    limit_exceeded: bool = Field(False, description="More matches than returned")
    references: References = Field(default_factory=References)


class ResponseEnvelope(CamelModel):
    """Standard wrapper for every non-validation response."""

    code: int
    current_time: int = Field(default_factory=lambda: int(time.time() * 1000))
    text: str
    version: int = API_VERSION
    data: Any = None

    @classmethod
    def ok(cls, data: Any) -> "ResponseEnvelope":
        return cls(code=200, text="OK", data=data)

    def to_json_dict(self, **kwargs: Any) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True, **kwargs)
