"""Test configuration and fixtures."""

import zipfile

import pytest

from transit_route_search.core.models import StoredAgency, StoredRoute
from transit_route_search.store import RouteStore, load_gtfs_feed

AGENCY_TXT = """agency_id,agency_name,agency_url,agency_timezone,agency_lang,agency_phone
1,Metro Transit,https://kingcounty.gov/metro,America/Los_Angeles,EN,206-553-3000
40,Sound Transit,https://www.soundtransit.org,America/Los_Angeles,en,1-888-889-6368
"""

ROUTES_TXT = """route_id,agency_id,route_short_name,route_long_name,route_desc,route_type,route_url,route_color,route_text_color
100001,1,1,Kinnear - Downtown Seattle,,3,https://kingcounty.gov/metro/1,,
100002,1,10,Capitol Hill - Downtown Seattle,,3,,,
100003,1,44,Ballard - University District,,3,,,
100004,1,E Line,RapidRide Aurora,Frequent service on Aurora Ave,3,,DC2626,FFFFFF
100005,1,C Line,RapidRide West Seattle,,3,,DC2626,FFFFFF
FERRY,1,973,West Seattle Water Taxi,,4,,,
HERITAGE,1,,Heritage Streetcar,,900,,,
100479,40,1 Line,Link light rail Northgate - Angle Lake,,0,,28813F,FFFFFF
2LINE,40,2 Line,Link light rail Redmond - South Bellevue,,0,,007CAD,FFFFFF
545,40,545,Redmond - Seattle Express,Express bus,3,,,
"""


@pytest.fixture
def gtfs_feed_dir(tmp_path):
    """A small two-agency GTFS feed on disk."""
    feed_dir = tmp_path / "gtfs"
    feed_dir.mkdir()
    (feed_dir / "agency.txt").write_text(AGENCY_TXT, encoding="utf-8")
    (feed_dir / "routes.txt").write_text(ROUTES_TXT, encoding="utf-8")
    return feed_dir


@pytest.fixture
def gtfs_feed_zip(tmp_path):
    """The sample feed as a zip archive."""
    feed_zip = tmp_path / "feed.zip"
    with zipfile.ZipFile(feed_zip, "w") as archive:
        archive.writestr("agency.txt", AGENCY_TXT)
        archive.writestr("routes.txt", ROUTES_TXT)
    return feed_zip


@pytest.fixture
def route_store(tmp_path, gtfs_feed_dir):
    """Route store loaded from the sample feed."""
    store = RouteStore(tmp_path / "routes.db", must_exist=False)
    load_gtfs_feed(gtfs_feed_dir, store)
    return store


@pytest.fixture
def sample_agencies():
    """Agency rows in catalog order."""
    return [
        StoredAgency(
            agency_id="1",
            name="Metro Transit",
            url="https://kingcounty.gov/metro",
            timezone="America/Los_Angeles",
        ),
        StoredAgency(
            agency_id="40",
            name="Sound Transit",
            url="https://www.soundtransit.org",
            timezone="America/Los_Angeles",
        ),
        StoredAgency(
            agency_id="97",
            name="Everett Transit",
            url="https://everetttransit.org",
            timezone="America/Los_Angeles",
        ),
    ]


@pytest.fixture
def make_stored_route():
    """Factory for store rows with sensible defaults."""

    def _make(route_id: str, agency_id: str = "1", **kwargs) -> StoredRoute:
        kwargs.setdefault("short_name", route_id)
        kwargs.setdefault("route_type", 3)
        return StoredRoute(route_id=route_id, agency_id=agency_id, **kwargs)

    return _make
