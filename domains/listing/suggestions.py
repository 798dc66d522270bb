"""
domains/listing/suggestions.py

Catalog helpers built on top of property listings:

- location_facets(): distinct states, cities and neighborhoods for filter dropdowns
- search_suggestions(): type-ahead suggestions for the public search box
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional

from domains.listing.models.listing import ListingStatus, Property
from domains.listing.status_labels import PROPERTY_TYPE_LABELS

MIN_QUERY_LENGTH = 2
DEFAULT_SUGGESTION_LIMIT = 10

# (min, max, label); max None means open-ended
PRICE_RANGES = (
    (0, 200000, "Hasta Bs. 200.000"),
    (200000, 500000, "Bs. 200.000 - Bs. 500.000"),
    (500000, 1000000, "Bs. 500.000 - Bs. 1.000.000"),
    (1000000, 2000000, "Bs. 1.000.000 - Bs. 2.000.000"),
    (2000000, None, "Más de Bs. 2.000.000"),
)


def location_facets(properties: Iterable[Property]) -> Dict[str, list]:
    """
    Distinct non-empty locations, sorted.

    Returns:
        {"states": [str], "cities": [{value, label, state}],
         "neighborhoods": [{value, label, city}]}
    """
    states = set()
    cities = set()
    neighborhoods = set()
    for prop in properties:
        state = (prop.location_state or "").strip()
        city = (prop.location_city or "").strip()
        neighborhood = (prop.location_neighborhood or "").strip()
        if state:
            states.add(state)
        if city and state:
            cities.add((state, city))
        if neighborhood and city:
            neighborhoods.add((city, neighborhood))

    return {
        "states": sorted(states),
        "cities": [
            {"value": city, "label": f"{city}, {state}", "state": state}
            for state, city in sorted(cities)
        ],
        "neighborhoods": [
            {"value": neighborhood, "label": f"{neighborhood}, {city}", "city": city}
            for city, neighborhood in sorted(neighborhoods)
        ],
    }


def _suggestion(kind: str, value: str, label: str, category: str) -> Dict[str, str]:
    return {"type": kind, "value": value, "label": label, "category": category}


def search_suggestions(
    query: Optional[str],
    properties: Iterable[Property],
    limit: int = DEFAULT_SUGGESTION_LIMIT,
) -> List[Dict[str, str]]:
    """
    Suggestions for a partially typed query.

    Only APPROVED properties contribute locations. Each location value is
    offered once, in the order states/cities/neighborhoods are first met.
    Price ranges are offered only when the query contains a digit.
    Queries shorter than two characters get no suggestions.
    """
    term = (query or "").strip().lower()
    if len(term) < MIN_QUERY_LENGTH:
        return []

    suggestions: List[Dict[str, str]] = []
    seen = set()

    for prop in properties:
        if prop.status != ListingStatus.APPROVED:
            continue
        state = prop.location_state or ""
        city = prop.location_city or ""
        neighborhood = prop.location_neighborhood or ""

        if state and term in state.lower() and state not in seen:
            seen.add(state)
            suggestions.append(_suggestion("location", state, state, "Departamento"))
        if city and term in city.lower() and city not in seen:
            seen.add(city)
            suggestions.append(_suggestion("location", city, f"{city}, {state}", "Ciudad"))
        if neighborhood and term in neighborhood.lower() and neighborhood not in seen:
            seen.add(neighborhood)
            suggestions.append(
                _suggestion("location", neighborhood, f"{neighborhood}, {city}", "Barrio")
            )

    for value, label in PROPERTY_TYPE_LABELS.items():
        if term in label.lower():
            suggestions.append(_suggestion("property_type", value, label, "Tipo de propiedad"))

    if re.search(r"\d", term):
        for low, high, label in PRICE_RANGES:
            value = f"{low}-{high if high is not None else ''}"
            suggestions.append(_suggestion("price_range", value, label, "Rango de precio"))

    return suggestions[:limit]
