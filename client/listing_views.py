"""
client/listing_views.py

Dashboard view state for a signed-in user.

A ListingView holds the ownership-scoped snapshot the backend returned,
applies the shared filter engine locally and computes the summary counts
over the unfiltered snapshot. After every successful moderation action the
snapshot is invalidated and fetched again.

Overlapping refreshes (e.g. two quick actions from different threads) are
resolved by a generation counter: only the most recently started fetch may
replace the snapshot.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Mapping, Optional

from client.api_client import ApiSession, api_request
from client.config import IS_DEV
from domains.listing.errors import ListingError
from domains.listing.filtering import count_by_status, filter_listings, parse_filter
from domains.listing.models.listing import Listing, ListingKind, Project, Property
from domains.listing.models.listing_filter import ListingFilter
from domains.listing.status_labels import status_label, status_variant

API_PREFIX = {
    ListingKind.PROPERTY: "/api/properties",
    ListingKind.PROJECT: "/api/projects",
}

MODEL = {
    ListingKind.PROPERTY: Property,
    ListingKind.PROJECT: Project,
}


class ListingView:
    """Scoped listings, the active filter and the status summary."""

    def __init__(self, session: ApiSession, kind: ListingKind = ListingKind.PROPERTY):
        self.session = session
        self.kind = ListingKind(kind)
        self.listings: List[Listing] = []
        self.criteria: ListingFilter = ListingFilter()
        self.loaded = False
        self.refresh_error: Optional[ListingError] = None

        self._lock = threading.Lock()
        self._generation = 0

    @property
    def prefix(self) -> str:
        return API_PREFIX[self.kind]

    # ---------------------------------------------------------
    # Snapshot
    # ---------------------------------------------------------

    def refresh(self) -> bool:
        """
        Fetch the scoped snapshot. Returns False when a newer refresh
        started meanwhile and this result was discarded.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation

        body = api_request(self.session, "GET", f"{self.prefix}/dashboard")
        model = MODEL[self.kind]
        listings = [model.model_validate(item) for item in body.get("items", [])]

        with self._lock:
            if generation != self._generation:
                if IS_DEV:
                    print(f"[VIEW] Discarded stale {self.kind.value} snapshot (gen {generation})")
                return False
            self.listings = listings
            self.loaded = True
            self.refresh_error = None

        if IS_DEV:
            print(f"[VIEW] Loaded {len(listings)} {self.kind.value} listings")
        return True

    def invalidate(self) -> None:
        self.loaded = False

    # ---------------------------------------------------------
    # Filtering
    # ---------------------------------------------------------

    def set_filter(self, params: Optional[Mapping[str, Any]]) -> List[Listing]:
        """
        Replace the active filter with form values and return the visible rows.

        Raises:
            ValidationError: malformed bound; the previous filter stays active
        """
        self.criteria = parse_filter(params)
        return self.visible()

    def clear_filter(self) -> List[Listing]:
        self.criteria = ListingFilter()
        return self.visible()

    def visible(self) -> List[Listing]:
        return filter_listings(self.listings, self.criteria)

    def counts(self) -> Dict[str, int]:
        """Summary cards: always over the unfiltered snapshot."""
        return count_by_status(self.listings)

    def rows(self) -> List[Dict[str, Any]]:
        """Visible listings with their status badge text/variant."""
        return [
            {
                "listing": listing,
                "status_label": status_label(listing.status),
                "status_variant": status_variant(listing.status),
            }
            for listing in self.visible()
        ]

    # ---------------------------------------------------------
    # Actions (each re-fetches on success)
    # ---------------------------------------------------------

    def _act(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        """
        Run a moderation request, then re-fetch the snapshot.

        The action's own error propagates. A failed re-fetch does not: the
        action already committed, so its result is returned, the view stays
        invalidated and the error is kept in refresh_error.
        """
        result = api_request(self.session, method, path, json=json)
        self.invalidate()
        try:
            self.refresh()
        except ListingError as e:
            self.refresh_error = e
            print(f"[VIEW] {method} {path} succeeded but refresh failed: {e.message}")
        return result

    def approve(self, listing_id: str) -> Any:
        return self._act("POST", f"{self.prefix}/{listing_id}/approve")

    def reject(self, listing_id: str, message: Optional[str] = None) -> Any:
        body = {"rejectionMessage": message} if message is not None else None
        return self._act("POST", f"{self.prefix}/{listing_id}/reject", json=body)

    def resend(self, listing_id: str) -> Any:
        return self._act("POST", f"{self.prefix}/{listing_id}/resend")

    def delete(self, listing_id: str) -> Any:
        return self._act("DELETE", f"{self.prefix}/{listing_id}")

    def review(self, listing_id: str, decision: str, reason: Optional[str] = None) -> Any:
        body: Dict[str, Any] = {"id": listing_id, "status": decision}
        if reason is not None:
            body["rejectionReason"] = reason
        return self._act("POST", f"{self.prefix}/approve", json=body)

    def pending_queue(self) -> List[Listing]:
        """Admin review queue, oldest first (ordered by the backend)."""
        body = api_request(self.session, "GET", f"{self.prefix}/approve")
        model = MODEL[self.kind]
        return [model.model_validate(item) for item in body.get("items", [])]
