"""Unit tests for route search execution and reference assembly."""

from unittest.mock import MagicMock

import pytest

from transit_route_search.core.exceptions import UpstreamQueryError, ValidationError
from transit_route_search.core.models import RouteType, SearchExpression
from transit_route_search.core.query import build_search_expression
from transit_route_search.core.search import (
    RouteSearcher,
    build_route,
    filter_agencies,
    trim_to_limit,
)


class TestTrimToLimit:
    """Test trim_to_limit."""

    def test_under_limit(self):
        """Test fewer rows than the limit are kept as-is."""
        assert trim_to_limit([1, 2], 3) == ([1, 2], False)

    def test_exactly_limit(self):
        """Test exactly limit rows is not truncation."""
        assert trim_to_limit([1, 2, 3], 3) == ([1, 2, 3], False)

    def test_over_limit_drops_last_row(self):
        """Test the over-fetched row is dropped and order kept."""
        assert trim_to_limit([3, 1, 2, 9], 3) == ([3, 1, 2], True)

    def test_empty(self):
        """Test no rows."""
        assert trim_to_limit([], 20) == ([], False)


class TestBuildRoute:
    """Test build_route."""

    def test_full_row(self, make_stored_route):
        """Test all columns are carried over."""
        route = build_route(
            make_stored_route(
                "100004",
                short_name="E Line",
                long_name="RapidRide Aurora",
                description="Frequent service",
                url="https://example.org/e",
                color="DC2626",
                text_color="FFFFFF",
            )
        )

        assert route.id == "1_100004"
        assert route.agency_id == "1"
        assert route.short_name == "E Line"
        assert route.null_safe_short_name == "E Line"
        assert route.route_type is RouteType.BUS
        assert route.color == "DC2626"

    def test_null_columns(self, make_stored_route):
        """Test NULL text columns become empty strings."""
        route = build_route(
            make_stored_route(
                "HERITAGE", short_name=None, long_name="Heritage Streetcar", route_type=900
            )
        )

        assert route.short_name == ""
        assert route.description == ""
        assert route.null_safe_short_name == "Heritage Streetcar"
        assert route.route_type == 900


class TestFilterAgencies:
    """Test filter_agencies."""

    def test_only_referenced_agencies(self, sample_agencies):
        """Test unreferenced agencies are left out."""
        result = filter_agencies(sample_agencies, {"40"})
        assert [a.id for a in result] == ["40"]

    def test_catalog_order(self, sample_agencies):
        """Test agencies come back in catalog order."""
        result = filter_agencies(sample_agencies, {"97", "1"})
        assert [a.id for a in result] == ["1", "97"]

    def test_duplicate_catalog_entries(self, sample_agencies):
        """Test an agency appears once even if listed twice."""
        result = filter_agencies(sample_agencies + sample_agencies[:1], {"1"})
        assert [a.id for a in result] == ["1"]

    def test_no_ids(self, sample_agencies):
        """Test an empty id set yields no agencies."""
        assert filter_agencies(sample_agencies, set()) == []


class TestRouteSearcher:
    """Test RouteSearcher against a mocked store."""

    @pytest.fixture
    def store(self, sample_agencies):
        store = MagicMock()
        store.get_agencies.side_effect = lambda ids: [
            a for a in sample_agencies if a.agency_id in set(ids)
        ]
        return store

    @pytest.fixture
    def expression(self):
        return SearchExpression(expression='"seattle"*', terms=["seattle"])

    @pytest.mark.parametrize("limit", [1, 5, 20])
    def test_requests_one_extra_row(self, store, expression, limit):
        """Test the store is asked for limit + 1 rows exactly once."""
        store.search_routes_by_name.return_value = []

        RouteSearcher(store).search(expression, limit)

        store.search_routes_by_name.assert_called_once_with(expression, limit + 1)

    def test_truncation_detected(self, store, expression, make_stored_route):
        """Test limitExceeded when the store returns limit + 1 rows."""
        store.search_routes_by_name.return_value = [
            make_stored_route("a"),
            make_stored_route("b"),
            make_stored_route("c", agency_id="40"),
        ]

        result = RouteSearcher(store).search(expression, 2)

        assert result.limit_exceeded is True
        assert [r.id for r in result.routes] == ["1_a", "1_b"]
        # The dropped row's agency is not referenced
        assert [a.id for a in result.references.agencies] == ["1"]
        store.get_agencies.assert_called_once_with({"1"})

    def test_not_truncated_at_limit(self, store, expression, make_stored_route):
        """Test exactly limit rows is reported as complete."""
        store.search_routes_by_name.return_value = [
            make_stored_route("a"),
            make_stored_route("b"),
        ]

        result = RouteSearcher(store).search(expression, 2)

        assert result.limit_exceeded is False
        assert len(result.routes) == 2

    def test_zero_matches(self, store, expression):
        """Test no matches is an empty, non-truncated result."""
        store.search_routes_by_name.return_value = []

        result = RouteSearcher(store).search(expression, 20)

        assert result.routes == []
        assert result.limit_exceeded is False
        assert result.references.agencies == []

    def test_agencies_deduplicated(self, store, expression, make_stored_route):
        """Test each referenced agency appears exactly once."""
        store.search_routes_by_name.return_value = [
            make_stored_route("a", agency_id="40"),
            make_stored_route("b", agency_id="1"),
            make_stored_route("c", agency_id="40"),
            make_stored_route("d", agency_id="1"),
        ]

        result = RouteSearcher(store).search(expression, 20)

        assert sorted(a.id for a in result.references.agencies) == ["1", "40"]
        assert len(result.references.agencies) == 2

    def test_store_error_propagates(self, store, expression):
        """Test store failures are not swallowed."""
        store.search_routes_by_name.side_effect = UpstreamQueryError("disk I/O error")

        with pytest.raises(UpstreamQueryError):
            RouteSearcher(store).search(expression, 20)

    def test_search_text_validates_input(self, store):
        """Test raw input problems raise ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            RouteSearcher(store).search_text("  \"' ")

        assert exc_info.value.field == "input"
        assert exc_info.value.message == "input parameter is required"
        store.search_routes_by_name.assert_not_called()

    def test_search_text_validates_max_count(self, store):
        """Test raw maxCount problems raise ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            RouteSearcher(store).search_text("seattle", "999")

        assert exc_info.value.field == "maxCount"
        assert exc_info.value.to_field_errors() == {
            "maxCount": ["maxCount must not exceed 20"]
        }


class TestRouteSearcherWithStore:
    """Test RouteSearcher against a real SQLite store."""

    def search(self, route_store, text, limit=20):
        return RouteSearcher(route_store).search(build_search_expression(text), limit)

    def test_two_agencies_referenced_once(self, route_store):
        """Test a query spanning both agencies references each once."""
        result = self.search(route_store, "seattle")

        assert len(result.routes) == 5
        assert sorted(a.id for a in result.references.agencies) == ["1", "40"]

    def test_single_agency(self, route_store):
        """Test only agencies of matched routes are referenced."""
        result = self.search(route_store, "redmond")

        assert sorted(r.id for r in result.routes) == ["40_2LINE", "40_545"]
        assert [a.id for a in result.references.agencies] == ["40"]
        assert result.references.agencies[0].name == "Sound Transit"

    def test_all_terms_must_match(self, route_store):
        """Test multi-word queries are conjunctive."""
        result = self.search(route_store, "downtown seattle")

        assert sorted(r.id for r in result.routes) == ["1_100001", "1_100002"]

    def test_prefix_match(self, route_store):
        """Test a partial word matches."""
        result = self.search(route_store, "Ball")

        assert [r.id for r in result.routes] == ["1_100003"]

    def test_description_searched(self, route_store):
        """Test route descriptions are indexed."""
        result = self.search(route_store, "frequent")

        assert [r.id for r in result.routes] == ["1_100004"]

    def test_limit_and_truncation(self, route_store):
        """Test over-fetch against the real store."""
        result = self.search(route_store, "seattle", limit=2)

        assert len(result.routes) == 2
        assert result.limit_exceeded is True

    def test_order_is_deterministic(self, route_store):
        """Test repeated searches return the same order."""
        first = self.search(route_store, "line")
        second = self.search(route_store, "line")

        assert [r.id for r in first.routes] == [r.id for r in second.routes]
        assert len(first.routes) == 4

    def test_injected_operator_is_literal(self, route_store):
        """Test operator words are matched as text, not syntax."""
        result = self.search(route_store, 'seattle" OR "zzzz')

        assert result.routes == []
        assert result.limit_exceeded is False

    def test_no_matches(self, route_store):
        """Test an unmatched query."""
        result = self.search(route_store, "zzzznonexistent")

        assert result.routes == []
        assert result.references.agencies == []
