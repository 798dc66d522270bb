"""
marketplace/queries.py

Read-side helpers shared by the property and project routers.
Each takes an open ListingStore and returns plain response dicts.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from domains.listing.errors import NotFound
from domains.listing.filtering import count_by_status, filter_listings, sort_listings
from domains.listing.models.actor import Actor, Role
from domains.listing.models.listing import Listing, ListingKind, ListingStatus
from domains.listing.models.listing_filter import ListingFilter
from marketplace.config import IS_DEV
from marketplace.rbac import can_view_listing
from marketplace.schemas import serialize_listing
from marketplace.store import ListingScope, ListingStore


def dashboard(
    store: ListingStore,
    kind: ListingKind,
    actor: Actor,
    criteria: Optional[ListingFilter],
) -> Dict[str, Any]:
    """
    Ownership-scoped listings for a dashboard.

    counts are computed over the scoped collection before the filter is
    applied, so the summary cards do not change while the user filters.
    """
    scoped = store.list_listings(kind, ListingScope.for_actor(actor))
    items = filter_listings(scoped, criteria)

    if IS_DEV:
        print(f"[API] dashboard {kind.value}: actor={actor.id} role={actor.role} "
              f"scoped={len(scoped)} matched={len(items)}")

    return {
        "items": [serialize_listing(listing) for listing in items],
        "total": len(items),
        "counts": count_by_status(scoped),
    }


def pending_queue(store: ListingStore, kind: ListingKind, actor: Actor) -> Dict[str, Any]:
    """PENDING listings awaiting review, oldest first. Agency admins see their agency only."""
    if actor.role == Role.SUPER_ADMIN:
        scope = ListingScope(status=ListingStatus.PENDING)
    else:
        scope = ListingScope(agency_id=actor.agency_id or "", status=ListingStatus.PENDING)

    pending: List[Listing] = sorted(
        store.list_listings(kind, scope), key=lambda listing: listing.created_at
    )
    return {
        "items": [serialize_listing(listing) for listing in pending],
        "total": len(pending),
    }


def public_catalog(
    store: ListingStore,
    kind: ListingKind,
    criteria: Optional[ListingFilter],
    limit: int,
    offset: int,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> Dict[str, Any]:
    """APPROVED listings only, filtered, sorted (newest first by default), then paginated."""
    approved = store.list_listings(kind, ListingScope.public())
    matched = sort_listings(filter_listings(approved, criteria), sort_by, sort_order)
    page = matched[offset:offset + limit]
    return {
        "items": [serialize_listing(listing) for listing in page],
        "total": len(matched),
        "limit": limit,
        "offset": offset,
    }


def visible_listing(
    store: ListingStore,
    kind: ListingKind,
    listing_id: str,
    actor: Optional[Actor],
) -> Listing:
    """
    Listing if the caller may see it.

    Raises:
        NotFound: absent, or not visible to the caller (existence is not leaked)
    """
    listing = store.find_listing(kind, listing_id)
    noun = "Property" if kind == ListingKind.PROPERTY else "Project"
    if listing is None:
        raise NotFound(f"{noun} not found")
    if not can_view_listing(actor, listing):
        if IS_DEV:
            print(f"[API] Hidden {kind.value}={listing_id} from actor={actor.id if actor else None}")
        raise NotFound(f"{noun} not found")
    return listing
