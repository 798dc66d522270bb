"""
marketplace/routes_projects.py

Project endpoints. Projects follow the same moderation lifecycle as
properties; floors and quadrants (units) hang off a project and are deleted
with it.

Security guarantees:
- owner_agent_id and agency_id come from the auth context, never the body
- floors/quadrants can only be added by the owning agent or an admin of the
  project's agency
- projects outside the caller's visibility answer 404
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from domains.listing.errors import Forbidden, NotFound, ValidationError
from domains.listing.models.listing import ListingKind, ListingStatus, Project
from domains.listing.models.listing_filter import ListingFilter
from marketplace import queries
from marketplace.auth_context import AuthContext, optional_auth_context, require_auth_context
from marketplace.config import DEFAULT_PAGE_SIZE, IS_DEV, MAX_PAGE_SIZE
from marketplace.dependencies import get_listing_filter, get_project_workflow, get_store, require_role
from marketplace.moderation import ModerationWorkflow
from marketplace.rbac import Role, can_manage_listing
from marketplace.schemas import (
    DashboardResponse,
    FloorCreateRequest,
    ListingListResponse,
    ListingResponse,
    PendingQueueResponse,
    ProjectCreateRequest,
    ProjectUpdateRequest,
    QuadrantCreateRequest,
    RejectRequest,
    ReviewRequest,
    serialize_listing,
)
from marketplace.store import ListingStore

KIND = ListingKind.PROJECT

router = APIRouter(prefix="/api/projects", tags=["projects"])


def _manageable_project(store: ListingStore, project_id: str, ctx: AuthContext) -> Project:
    project = store.find_listing(KIND, project_id)
    if project is None:
        raise NotFound("Project not found")
    if not can_manage_listing(ctx, project):
        print(f"[AUTHZ] Denied project change: user_id={ctx.id} role={ctx.role} project={project_id}")
        raise Forbidden("You do not have permission to modify this project")
    return project


# ========================================================================
# Public catalog
# ========================================================================

@router.get("", response_model=ListingListResponse)
def list_projects(
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    criteria: ListingFilter = Depends(get_listing_filter),
    store: ListingStore = Depends(get_store),
):
    """Approved projects, newest first. Property-only bounds (price, bedrooms...) exclude projects."""
    return queries.public_catalog(store, KIND, criteria, limit, offset)


# ========================================================================
# Dashboards and review queue
# ========================================================================

@router.get("/dashboard", response_model=DashboardResponse)
def project_dashboard(
    criteria: ListingFilter = Depends(get_listing_filter),
    ctx: AuthContext = Depends(require_auth_context),
    store: ListingStore = Depends(get_store),
):
    return queries.dashboard(store, KIND, ctx, criteria)


@router.get("/approve", response_model=PendingQueueResponse)
def pending_projects(
    ctx: AuthContext = Depends(require_role(Role.SUPER_ADMIN, Role.AGENCY_ADMIN)),
    store: ListingStore = Depends(get_store),
):
    """Review queue: pending projects, oldest first."""
    return queries.pending_queue(store, KIND, ctx)


@router.post("/approve", response_model=ListingResponse)
def review_project(
    request: ReviewRequest,
    ctx: AuthContext = Depends(require_auth_context),
    workflow: ModerationWorkflow = Depends(get_project_workflow),
):
    updated = workflow.review(request.id, ctx, request.status, request.rejection_reason)
    verb = "approved" if updated.status == ListingStatus.APPROVED else "rejected"
    return {"item": serialize_listing(updated), "message": f"Project {verb} successfully"}


# ========================================================================
# Floors and quadrants
# ========================================================================

@router.post("/floors/{floor_id}/quadrants", response_model=ListingResponse, status_code=201)
def add_quadrant(
    floor_id: str,
    request: QuadrantCreateRequest,
    ctx: AuthContext = Depends(require_auth_context),
    store: ListingStore = Depends(get_store),
):
    """
    Add a unit to a floor.

    Raises:
        NotFound(404): floor or its project does not exist
        Forbidden(403): caller cannot manage the project
    """
    floor = store.find_floor(floor_id)
    if floor is None:
        raise NotFound("Floor not found")
    _manageable_project(store, floor["project_id"], ctx)

    store.add_quadrant(floor_id, request.model_dump())
    if IS_DEV:
        print(f"[API] Quadrant added: floor={floor_id} project={floor['project_id']} by={ctx.id}")
    project = store.find_listing(KIND, floor["project_id"])
    return {"item": serialize_listing(project), "message": "Quadrant added successfully"}


# ========================================================================
# Create / read / edit / delete
# ========================================================================

@router.post("", response_model=ListingResponse, status_code=201)
def create_project(
    request: ProjectCreateRequest,
    ctx: AuthContext = Depends(require_role(Role.AGENT)),
    store: ListingStore = Depends(get_store),
):
    """Publish a project (with optional nested floors and quadrants) for review."""
    if not ctx.agency_id:
        raise ValidationError("Agent is not assigned to an agency")

    created = store.create_project(request.model_dump(), owner_agent_id=ctx.id, agency_id=ctx.agency_id)
    print(f"[API] Project created: id={created.id} agent={ctx.id} agency={ctx.agency_id}")
    return {"item": serialize_listing(created), "message": "Project submitted for review"}


@router.get("/{project_id}", response_model=ListingResponse)
def get_project(
    project_id: str,
    ctx: Optional[AuthContext] = Depends(optional_auth_context),
    store: ListingStore = Depends(get_store),
):
    return {"item": serialize_listing(queries.visible_listing(store, KIND, project_id, ctx))}


@router.put("/{project_id}", response_model=ListingResponse)
def update_project(
    project_id: str,
    request: ProjectUpdateRequest,
    ctx: AuthContext = Depends(require_auth_context),
    workflow: ModerationWorkflow = Depends(get_project_workflow),
):
    updated = workflow.edit(project_id, ctx, request.model_dump(exclude_unset=True))
    return {"item": serialize_listing(updated), "message": "Project updated successfully"}


@router.delete("/{project_id}")
def delete_project(
    project_id: str,
    ctx: AuthContext = Depends(require_auth_context),
    workflow: ModerationWorkflow = Depends(get_project_workflow),
):
    """Permanently delete a project with all its floors and quadrants."""
    workflow.permanent_delete(project_id, ctx)
    return {"message": "Project deleted successfully"}


@router.post("/{project_id}/floors", response_model=ListingResponse, status_code=201)
def add_floor(
    project_id: str,
    request: FloorCreateRequest,
    ctx: AuthContext = Depends(require_auth_context),
    store: ListingStore = Depends(get_store),
):
    """
    Add a floor (optionally with quadrants) to a project.

    Raises:
        ValidationError(400): floor number already used in this project
    """
    _manageable_project(store, project_id, ctx)

    store.add_floor(
        project_id,
        request.number,
        request.name,
        quadrants=[quadrant.model_dump() for quadrant in request.quadrants],
    )

    project = store.find_listing(KIND, project_id)
    return {"item": serialize_listing(project), "message": "Floor added successfully"}


# ========================================================================
# Moderation actions
# ========================================================================

@router.post("/{project_id}/approve", response_model=ListingResponse)
def approve_project(
    project_id: str,
    ctx: AuthContext = Depends(require_auth_context),
    workflow: ModerationWorkflow = Depends(get_project_workflow),
):
    updated = workflow.approve(project_id, ctx)
    return {"item": serialize_listing(updated), "message": "Project approved successfully"}


@router.post("/{project_id}/reject", response_model=ListingResponse)
def reject_project(
    project_id: str,
    request: Optional[RejectRequest] = Body(None),
    ctx: AuthContext = Depends(require_auth_context),
    workflow: ModerationWorkflow = Depends(get_project_workflow),
):
    message = request.rejection_message if request else None
    updated = workflow.reject(project_id, ctx, message)
    return {"item": serialize_listing(updated), "message": "Project rejected successfully"}


@router.post("/{project_id}/resend", response_model=ListingResponse)
def resend_project(
    project_id: str,
    ctx: AuthContext = Depends(require_auth_context),
    workflow: ModerationWorkflow = Depends(get_project_workflow),
):
    updated = workflow.resend(project_id, ctx)
    return {"item": serialize_listing(updated), "message": "Project resent for review"}
