"""
domains/listing/filtering.py

Filter/search engine shared by the API and the dashboard client.

Pure Python logic - no FastAPI imports, no database access.

- filter_listings(): AND of every specified predicate, then newest first
- count_by_status(): pending/approved/rejected over an unfiltered collection
- parse_filter(): boundary validation of raw query/form values
- sort_listings(): caller-chosen catalog order (sortBy/sortOrder)
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar

from pydantic import ValidationError as PydanticValidationError

from domains.listing.errors import ValidationError
from domains.listing.models.listing import Listing, ListingStatus
from domains.listing.models.listing_filter import ListingFilter

L = TypeVar("L", bound=Listing)


# Range filter -> listing attribute it bounds
RANGE_ATTRIBUTES = (
    ("min_price", "max_price", "price"),
    ("min_bedrooms", "max_bedrooms", "bedrooms"),
    ("min_bathrooms", "max_bathrooms", "bathrooms"),
    ("min_square_meters", "max_square_meters", "area"),
)

# Exact-match filter -> listing attribute
EXACT_ATTRIBUTES = (
    ("status", "status"),
    ("location_state", "location_state"),
    ("location_city", "location_city"),
    ("property_type", "property_type"),
    ("transaction_type", "transaction_type"),
)

# Catalog sort parameter -> listing attribute
SORT_KEYS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "price": "price",
    "title": "title",
}


def parse_filter(params: Optional[Mapping[str, Any]]) -> ListingFilter:
    """
    Build a ListingFilter from raw query/form values.

    Raises:
        ValidationError: non-numeric or negative bounds, min > max, unknown enum value
    """
    data = dict(params or {})
    if hasattr(params, "getlist"):
        # Repeated query keys (?features=a&features=b)
        features = params.getlist("features")
        if features:
            data["features"] = features
    try:
        return ListingFilter.model_validate(data)
    except PydanticValidationError as e:
        problems = []
        for err in e.errors():
            field = ".".join(str(part) for part in err.get("loc", ())) or "filter"
            problems.append(f"{field}: {err.get('msg', 'invalid value')}")
        raise ValidationError("Invalid filter - " + "; ".join(problems))


def _in_range(value: Any, low: Optional[float], high: Optional[float]) -> bool:
    if low is None and high is None:
        return True
    if value is None:
        # The listing does not carry this attribute (e.g. price on a project)
        return False
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def matches(listing: Listing, criteria: ListingFilter) -> bool:
    """True when the listing satisfies every specified predicate."""
    if criteria.search:
        term = criteria.search.lower()
        if term not in listing.searchable_text().lower():
            return False

    for filter_name, attribute in EXACT_ATTRIBUTES:
        wanted = getattr(criteria, filter_name)
        if wanted is None:
            continue
        if getattr(listing, attribute, None) != wanted:
            return False

    for low_name, high_name, attribute in RANGE_ATTRIBUTES:
        low = getattr(criteria, low_name)
        high = getattr(criteria, high_name)
        if not _in_range(getattr(listing, attribute, None), low, high):
            return False

    if criteria.features:
        if not set(criteria.features) & set(getattr(listing, "features", None) or ()):
            return False

    return True


def sort_newest_first(listings: Iterable[L]) -> List[L]:
    return sorted(listings, key=lambda listing: listing.created_at, reverse=True)


def filter_listings(
    listings: Sequence[L],
    criteria: Optional[ListingFilter] = None,
) -> List[L]:
    """
    Return the listings passing every predicate of criteria, newest first.

    An empty (or missing) filter returns the whole collection, sorted.
    """
    if criteria is None or criteria.is_empty():
        selected: Iterable[L] = listings
    else:
        selected = [listing for listing in listings if matches(listing, criteria)]
    return sort_newest_first(selected)


def sort_listings(
    listings: Iterable[L],
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> List[L]:
    """
    Catalog ordering chosen by the caller.

    Raises:
        ValidationError: sort_by not in SORT_KEYS, or sort_order not asc/desc
    """
    if sort_by not in SORT_KEYS:
        raise ValidationError("Invalid sortBy parameter")
    if sort_order not in ("asc", "desc"):
        raise ValidationError("Invalid sortOrder parameter")

    attribute = SORT_KEYS[sort_by]
    listings = list(listings)
    if any(not hasattr(listing, attribute) for listing in listings):
        raise ValidationError(f"Cannot sort these listings by {sort_by}")

    def key(listing):
        value = getattr(listing, attribute)
        return value.lower() if isinstance(value, str) else value

    return sorted(listings, key=key, reverse=(sort_order == "desc"))


def count_by_status(listings: Iterable[Listing]) -> Dict[str, int]:
    """Dashboard summary counts. Pass the unfiltered, ownership-scoped collection."""
    counts = {"pending": 0, "approved": 0, "rejected": 0}
    for listing in listings:
        counts[ListingStatus(listing.status).value.lower()] += 1
    return counts
