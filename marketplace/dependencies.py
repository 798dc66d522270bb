"""
marketplace/dependencies.py

Reusable FastAPI dependencies: request-scoped store, workflows, role gates
and the listing filter parsed from the query string.
"""

from __future__ import annotations

from typing import Callable, Iterator

from fastapi import Depends, HTTPException, Request

from domains.listing.filtering import parse_filter
from domains.listing.models.listing import ListingKind
from domains.listing.models.listing_filter import ListingFilter
from marketplace.auth_context import AuthContext, require_auth_context
from marketplace.config import IS_DEV
from marketplace.db import get_db
from marketplace.moderation import ModerationWorkflow
from marketplace.store import ListingStore


def get_store() -> Iterator[ListingStore]:
    """One connection per request, closed when the response is done."""
    conn = get_db()
    try:
        yield ListingStore(conn)
    finally:
        conn.close()


def get_property_workflow(store: ListingStore = Depends(get_store)) -> ModerationWorkflow:
    return ModerationWorkflow(store, ListingKind.PROPERTY)


def get_project_workflow(store: ListingStore = Depends(get_store)) -> ModerationWorkflow:
    return ModerationWorkflow(store, ListingKind.PROJECT)


def get_listing_filter(request: Request) -> ListingFilter:
    """
    Filter from query parameters (search, status, minPrice...).

    Raises:
        ValidationError: bad bound or enum value (mapped to 400)
    """
    return parse_filter(request.query_params)


def require_role(*roles: str) -> Callable:
    """
    FastAPI dependency factory restricting a route to the given roles.

    Usage in routes:
        @router.get("/stats")
        def stats(ctx: AuthContext = Depends(require_role(Role.SUPER_ADMIN))):
            ...

    Raises:
        HTTPException(403): If the user's role is not in roles
    """
    def _check_role(ctx: AuthContext = Depends(require_auth_context)) -> AuthContext:
        if ctx.role not in roles:
            print(f"[AUTHZ] Role denied: user_id={ctx.id}, role={ctx.role}, required={list(roles)}")
            raise HTTPException(
                status_code=403,
                detail="Insufficient permissions for this operation",
            )
        if IS_DEV:
            print(f"[AUTHZ] Role granted: user_id={ctx.id}, role={ctx.role}")
        return ctx

    return _check_role
