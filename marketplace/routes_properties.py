"""
marketplace/routes_properties.py

Property endpoints: public catalog, agent publishing, admin moderation and
dashboard queries.

Security guarantees:
- owner_agent_id and agency_id come from the auth context, never the body
- agency admins only see and moderate their own agency's properties
- properties outside the caller's visibility answer 404 (existence is not leaked)
- all errors are {"error": message} (see main.py handlers)
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from domains.listing.errors import ValidationError
from domains.listing.models.listing import ListingKind, ListingStatus
from domains.listing.models.listing_filter import ListingFilter
from domains.listing.suggestions import location_facets, search_suggestions
from marketplace import queries
from marketplace.auth_context import AuthContext, optional_auth_context, require_auth_context
from marketplace.config import DEFAULT_PAGE_SIZE, IS_DEV, MAX_PAGE_SIZE, MAX_SUGGESTIONS
from marketplace.dependencies import get_listing_filter, get_property_workflow, get_store, require_role
from marketplace.moderation import ModerationWorkflow
from marketplace.rbac import Role
from marketplace.schemas import (
    DashboardResponse,
    ListingListResponse,
    ListingResponse,
    LocationsResponse,
    PendingQueueResponse,
    PropertyCreateRequest,
    PropertyStatsResponse,
    PropertyUpdateRequest,
    RejectRequest,
    ReviewRequest,
    SearchSuggestionsResponse,
    serialize_listing,
)
from marketplace.store import ListingScope, ListingStore

KIND = ListingKind.PROPERTY

router = APIRouter(prefix="/api/properties", tags=["properties"])


# ========================================================================
# Public catalog
# ========================================================================

@router.get("", response_model=ListingListResponse)
def list_properties(
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    criteria: ListingFilter = Depends(get_listing_filter),
    store: ListingStore = Depends(get_store),
):
    """
    Approved properties matching the query-string filter, newest first
    unless sortBy (createdAt, updatedAt, price, title) / sortOrder (asc, desc)
    say otherwise.

    Filters: search, locationState, locationCity, minPrice/maxPrice,
    minBedrooms/maxBedrooms, minBathrooms/maxBathrooms,
    minSquareMeters/maxSquareMeters, propertyType, transactionType,
    features (repeatable; matches any).

    Raises:
        ValidationError(400): malformed or inverted numeric bounds, unknown sort
    """
    return queries.public_catalog(store, KIND, criteria, limit, offset, sort_by, sort_order)


@router.get("/locations", response_model=LocationsResponse)
def property_locations(store: ListingStore = Depends(get_store)):
    """Distinct states, cities and neighborhoods across all properties."""
    return location_facets(store.list_listings(KIND))


@router.get("/search-suggestions", response_model=SearchSuggestionsResponse)
def property_search_suggestions(
    q: Optional[str] = Query(None, max_length=200),
    store: ListingStore = Depends(get_store),
):
    """Type-ahead suggestions; queries under two characters return none."""
    if not q or len(q.strip()) < 2:
        return {"suggestions": []}
    approved = store.list_listings(KIND, ListingScope.public())
    return {"suggestions": search_suggestions(q, approved, limit=MAX_SUGGESTIONS)}


# ========================================================================
# Dashboards
# ========================================================================

@router.get("/dashboard", response_model=DashboardResponse)
def property_dashboard(
    criteria: ListingFilter = Depends(get_listing_filter),
    ctx: AuthContext = Depends(require_auth_context),
    store: ListingStore = Depends(get_store),
):
    """
    Ownership-scoped properties with unfiltered status counts.

    Scope: agents see their own, agency admins their agency's, super admins all.
    """
    return queries.dashboard(store, KIND, ctx, criteria)


@router.get("/stats", response_model=PropertyStatsResponse)
def property_stats(
    ctx: AuthContext = Depends(require_role(Role.SUPER_ADMIN)),
    store: ListingStore = Depends(get_store),
):
    """Platform-wide counts per status and total value of approved properties."""
    return store.property_stats()


@router.get("/approve", response_model=PendingQueueResponse)
def pending_properties(
    ctx: AuthContext = Depends(require_role(Role.SUPER_ADMIN, Role.AGENCY_ADMIN)),
    store: ListingStore = Depends(get_store),
):
    """Review queue: pending properties, oldest first."""
    return queries.pending_queue(store, KIND, ctx)


@router.post("/approve", response_model=ListingResponse)
def review_property(
    request: ReviewRequest,
    ctx: AuthContext = Depends(require_auth_context),
    workflow: ModerationWorkflow = Depends(get_property_workflow),
):
    """
    Approve or reject from the review queue.

    Body: {"id": ..., "status": "APPROVED" | "REJECTED", "rejectionReason": ...}

    Raises:
        NotFound(404), Forbidden(403), InvalidState(409), ValidationError(400)
    """
    updated = workflow.review(request.id, ctx, request.status, request.rejection_reason)
    verb = "approved" if updated.status == ListingStatus.APPROVED else "rejected"
    return {"item": serialize_listing(updated), "message": f"Property {verb} successfully"}


# ========================================================================
# Create / read / edit / delete
# ========================================================================

@router.post("", response_model=ListingResponse, status_code=201)
def create_property(
    request: PropertyCreateRequest,
    ctx: AuthContext = Depends(require_role(Role.AGENT)),
    store: ListingStore = Depends(get_store),
):
    """
    Publish a property for review. Owner and agency come from the caller.

    Raises:
        ValidationError(400): agent has no agency, or invalid body
    """
    if not ctx.agency_id:
        raise ValidationError("Agent is not assigned to an agency")

    created = store.create_property(request.model_dump(), owner_agent_id=ctx.id, agency_id=ctx.agency_id)
    print(f"[API] Property created: id={created.id} agent={ctx.id} agency={ctx.agency_id}")
    return {"item": serialize_listing(created), "message": "Property submitted for review"}


@router.get("/{property_id}", response_model=ListingResponse)
def get_property(
    property_id: str,
    ctx: Optional[AuthContext] = Depends(optional_auth_context),
    store: ListingStore = Depends(get_store),
):
    """Approved properties are public; others only for their owner and admins."""
    return {"item": serialize_listing(queries.visible_listing(store, KIND, property_id, ctx))}


@router.put("/{property_id}", response_model=ListingResponse)
def update_property(
    property_id: str,
    request: PropertyUpdateRequest,
    ctx: AuthContext = Depends(require_auth_context),
    workflow: ModerationWorkflow = Depends(get_property_workflow),
):
    """
    Edit descriptive fields. An agent editing their rejected property
    resubmits it (status back to PENDING).
    """
    changes = request.model_dump(exclude_unset=True)
    updated = workflow.edit(property_id, ctx, changes)
    return {"item": serialize_listing(updated), "message": "Property updated successfully"}


@router.delete("/{property_id}")
def delete_property(
    property_id: str,
    ctx: AuthContext = Depends(require_auth_context),
    workflow: ModerationWorkflow = Depends(get_property_workflow),
):
    """Permanently delete a property. Irreversible."""
    workflow.permanent_delete(property_id, ctx)
    return {"message": "Property deleted successfully"}


# ========================================================================
# Moderation actions
# ========================================================================

@router.post("/{property_id}/approve", response_model=ListingResponse)
def approve_property(
    property_id: str,
    ctx: AuthContext = Depends(require_auth_context),
    workflow: ModerationWorkflow = Depends(get_property_workflow),
):
    updated = workflow.approve(property_id, ctx)
    return {"item": serialize_listing(updated), "message": "Property approved successfully"}


@router.post("/{property_id}/reject", response_model=ListingResponse)
def reject_property(
    property_id: str,
    request: Optional[RejectRequest] = Body(None),
    ctx: AuthContext = Depends(require_auth_context),
    workflow: ModerationWorkflow = Depends(get_property_workflow),
):
    """
    Reject a pending or approved property.

    Body (optional): {"rejectionMessage": "..."}
    """
    message = request.rejection_message if request else None
    updated = workflow.reject(property_id, ctx, message)
    if IS_DEV:
        print(f"[API] Property rejected: id={property_id} by={ctx.id}")
    return {"item": serialize_listing(updated), "message": "Property rejected successfully"}


@router.post("/{property_id}/resend", response_model=ListingResponse)
def resend_property(
    property_id: str,
    ctx: AuthContext = Depends(require_auth_context),
    workflow: ModerationWorkflow = Depends(get_property_workflow),
):
    """Owning agent sends a rejected property back for review."""
    updated = workflow.resend(property_id, ctx)
    return {"item": serialize_listing(updated), "message": "Property resent for review"}
