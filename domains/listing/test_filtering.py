"""
Filter/search engine tests.

Run: pytest domains/listing/test_filtering.py -v
"""

from datetime import datetime, timedelta, timezone

import pytest

from domains.listing.errors import ValidationError
from domains.listing.filtering import (
    count_by_status,
    filter_listings,
    matches,
    parse_filter,
    sort_listings,
)
from domains.listing.models.listing import ListingStatus, Project, Property
from domains.listing.models.listing_filter import ListingFilter

BASE = datetime(2024, 5, 1, tzinfo=timezone.utc)


def make_property(n=0, **overrides):
    data = {
        "id": f"p{n}",
        "owner_agent_id": "agent_a",
        "agency_id": "agency_a",
        "created_at": BASE + timedelta(days=n),
        "updated_at": BASE + timedelta(days=n),
        "title": f"Propiedad {n}",
        "description": "",
        "price": 250000,
        "area": 120,
        "bedrooms": 3,
        "bathrooms": 2,
        "property_type": "HOUSE",
        "transaction_type": "SALE",
        "location_state": "Santa Cruz",
        "location_city": "Santa Cruz de la Sierra",
        "address": "",
    }
    data.update(overrides)
    return Property(**data)


def make_project(n=0, **overrides):
    data = {
        "id": f"j{n}",
        "owner_agent_id": "agent_a",
        "agency_id": "agency_a",
        "created_at": BASE + timedelta(days=n),
        "updated_at": BASE + timedelta(days=n),
        "name": f"Proyecto {n}",
        "location": "Zona Norte",
    }
    data.update(overrides)
    return Project(**data)


class TestPredicates:
    def test_min_price_excludes_cheaper(self):
        prop = make_property(price=250000)
        assert not matches(prop, ListingFilter(min_price=300000))

    def test_inclusive_price_range(self):
        prop = make_property(price=250000)
        assert matches(prop, ListingFilter(min_price=200000, max_price=300000))
        assert matches(prop, ListingFilter(min_price=250000, max_price=250000))

    def test_one_sided_bound(self):
        prop = make_property(price=250000)
        assert matches(prop, ListingFilter(max_price=250000))
        assert not matches(prop, ListingFilter(max_price=249999))

    def test_search_matches_address_case_insensitive(self):
        prop = make_property(address="Rua Vila Madalena 12")
        assert matches(prop, ListingFilter(search="Vila"))
        assert matches(prop, ListingFilter(search="vila madalena"))

    def test_search_covers_title_description_city(self):
        prop = make_property(title="Penthouse", description="Vista al río", location_city="Cochabamba")
        for term in ("penthouse", "RÍO", "cochabamba"):
            assert matches(prop, ListingFilter(search=term))
        assert not matches(prop, ListingFilter(search="Tarija"))

    def test_search_does_not_cover_state(self):
        prop = make_property(location_state="Beni", location_city="Trinidad")
        assert not matches(prop, ListingFilter(search="Beni"))

    def test_exact_status_city_state(self):
        prop = make_property(status="APPROVED", location_city="La Paz", location_state="La Paz")
        assert matches(prop, ListingFilter(status="APPROVED", location_city="La Paz"))
        assert not matches(prop, ListingFilter(status="PENDING"))
        assert not matches(prop, ListingFilter(location_city="La"))

    def test_property_and_transaction_type(self):
        prop = make_property(property_type="APARTMENT", transaction_type="RENT")
        assert matches(prop, ListingFilter(property_type="APARTMENT", transaction_type="RENT"))
        assert not matches(prop, ListingFilter(transaction_type="ANTICRETICO"))

    def test_all_predicates_are_anded(self):
        prop = make_property(price=100000, bedrooms=2)
        assert not matches(prop, ListingFilter(max_price=150000, min_bedrooms=3))

    def test_square_meters_use_area(self):
        prop = make_property(area=95.5)
        assert matches(prop, ListingFilter(min_square_meters=90, max_square_meters=100))
        assert not matches(prop, ListingFilter(min_square_meters=96))

    def test_fractional_bathrooms(self):
        prop = make_property(bathrooms=2.5)
        assert matches(prop, ListingFilter(min_bathrooms=2.5))

    def test_project_excluded_by_property_only_bound(self):
        project = make_project()
        assert not matches(project, ListingFilter(min_price=0))
        assert matches(project, ListingFilter(search="zona norte"))


    def test_features_match_any(self):
        pool = make_property(features=["piscina", "jardín"])
        criteria = ListingFilter(features=["piscina", "gimnasio"])
        assert matches(pool, criteria)
        assert not matches(make_property(features=["terraza"]), criteria)
        assert not matches(make_property(), criteria)
        assert not matches(make_project(), criteria)

class TestFilterListings:
    def test_empty_filter_returns_newest_first(self):
        items = [make_property(1), make_property(3), make_property(2)]
        result = filter_listings(items, ListingFilter())
        assert [p.id for p in result] == ["p3", "p2", "p1"]
        assert filter_listings(items) == result

    def test_empty_collection(self):
        assert filter_listings([], ListingFilter(search="x")) == []
        assert count_by_status([]) == {"pending": 0, "approved": 0, "rejected": 0}

    def test_sorted_after_filtering(self):
        items = [make_property(1, price=10), make_property(5, price=20), make_property(3, price=30)]
        result = filter_listings(items, ListingFilter(min_price=15))
        assert [p.id for p in result] == ["p5", "p3"]

    def test_idempotent(self):
        items = [make_property(i, price=i * 100000) for i in range(6)]
        criteria = ListingFilter(min_price=100000, max_price=400000)
        once = filter_listings(items, criteria)
        assert filter_listings(once, criteria) == once

    def test_does_not_mutate_input(self):
        items = [make_property(1), make_property(2)]
        filter_listings(items, ListingFilter())
        assert [p.id for p in items] == ["p1", "p2"]


class TestCountByStatus:
    def test_counts(self):
        items = [
            make_property(1, status=ListingStatus.PENDING),
            make_property(2, status=ListingStatus.PENDING),
            make_property(3, status=ListingStatus.APPROVED),
            make_property(4, status=ListingStatus.REJECTED),
        ]
        assert count_by_status(items) == {"pending": 2, "approved": 1, "rejected": 1}

    def test_mixed_kinds(self):
        items = [make_property(1), make_project(2, status="APPROVED")]
        assert count_by_status(items) == {"pending": 1, "approved": 1, "rejected": 0}


class TestParseFilter:
    def test_camel_case_and_blank_fields(self):
        criteria = parse_filter({"minPrice": "1000", "maxPrice": "", "locationCity": " La Paz ", "search": ""})
        assert criteria.min_price == 1000
        assert criteria.max_price is None
        assert criteria.location_city == "La Paz"
        assert criteria.search is None

    def test_empty_input(self):
        assert parse_filter(None).is_empty()
        assert parse_filter({}).is_empty()

    def test_unknown_keys_ignored(self):
        assert parse_filter({"limit": "10", "page": "2"}).is_empty()

    @pytest.mark.parametrize(
        "params",
        [
            {"minPrice": "abc"},
            {"minPrice": "-5"},
            {"minPrice": "500", "maxPrice": "100"},
            {"minBedrooms": "4", "maxBedrooms": "2"},
            {"maxSquareMeters": "nan"},
            {"status": "ARCHIVED"},
            {"propertyType": "CASTLE"},
        ],
    )
    def test_invalid_input_raises_validation_error(self, params):
        with pytest.raises(ValidationError):
            parse_filter(params)

    def test_equal_bounds_allowed(self):
        criteria = parse_filter({"minPrice": "100", "maxPrice": "100"})
        assert criteria.min_price == criteria.max_price == 100

    def test_features_from_repeated_keys_or_csv(self):
        class MultiDict(dict):
            def getlist(self, key):
                return ["piscina", " jardín "] if key == "features" else []

        assert parse_filter(MultiDict(features="jardín")).features == ["piscina", "jardín"]
        assert parse_filter({"features": "piscina, ,terraza"}).features == ["piscina", "terraza"]
        assert parse_filter({"features": ""}).features is None


class TestSortListings:
    def test_default_is_newest_first(self):
        listings = [make_property(1), make_property(3), make_property(2)]
        assert [p.id for p in sort_listings(listings)] == ["p3", "p2", "p1"]

    def test_price_ascending(self):
        listings = [make_property(1, price=300), make_property(2, price=100), make_property(3, price=200)]
        assert [p.price for p in sort_listings(listings, "price", "asc")] == [100, 200, 300]

    def test_title_ignores_case(self):
        listings = [make_property(1, title="casa B"), make_property(2, title="Casa A")]
        assert [p.title for p in sort_listings(listings, "title", "asc")] == ["Casa A", "casa B"]

    @pytest.mark.parametrize("sort_by,sort_order", [("bedrooms", "asc"), ("price", "up"), ("", "desc")])
    def test_unknown_sort_rejected(self, sort_by, sort_order):
        with pytest.raises(ValidationError):
            sort_listings([make_property()], sort_by, sort_order)

    def test_projects_cannot_sort_by_price(self):
        with pytest.raises(ValidationError):
            sort_listings([make_project()], "price", "asc")
