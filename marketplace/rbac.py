"""
marketplace/rbac.py

Role and ownership rules for listings.

Roles:
- SUPER_ADMIN: moderates and manages every listing
- AGENCY_ADMIN: moderates and manages the listings of their own agency
- AGENT: manages (edits, resends, deletes) only the listings they created

Pure Python logic - no FastAPI imports, no database access.
"""

from typing import Optional

from domains.listing.models.actor import ALL_ROLES, Actor, Role
from domains.listing.models.listing import Listing, ListingStatus

__all__ = [
    "Role",
    "ALL_ROLES",
    "is_admin",
    "belongs_to_agency",
    "is_owner",
    "can_moderate",
    "can_manage_listing",
    "can_view_listing",
]


# ============================================================================
# Role checks
# ============================================================================

def is_admin(actor: Actor) -> bool:
    return actor.role in (Role.SUPER_ADMIN, Role.AGENCY_ADMIN)


def belongs_to_agency(actor: Actor, agency_id: Optional[str]) -> bool:
    """Super admins belong to every agency; others only to their own."""
    if actor.role == Role.SUPER_ADMIN:
        return True
    return actor.agency_id is not None and actor.agency_id == agency_id


def is_owner(actor: Actor, listing: Listing) -> bool:
    return actor.id == listing.owner_agent_id


# ============================================================================
# Listing permissions
# ============================================================================

def can_moderate(actor: Actor, listing: Listing) -> bool:
    """
    Approve/reject permission.

    Super admins moderate any listing; agency admins only listings of their
    agency. Agents never moderate, not even their own listings.
    """
    if actor.role == Role.SUPER_ADMIN:
        return True
    if actor.role == Role.AGENCY_ADMIN:
        return belongs_to_agency(actor, listing.agency_id)
    return False


def can_manage_listing(actor: Actor, listing: Listing) -> bool:
    """Edit/delete permission: super admin, same-agency admin, or the owning agent."""
    if actor.role == Role.SUPER_ADMIN:
        return True
    if actor.role == Role.AGENCY_ADMIN:
        return belongs_to_agency(actor, listing.agency_id)
    if actor.role == Role.AGENT:
        return is_owner(actor, listing)
    return False


def can_view_listing(actor: Optional[Actor], listing: Listing) -> bool:
    """Approved listings are public; the rest follow manage permission."""
    if listing.status == ListingStatus.APPROVED:
        return True
    if actor is None:
        return False
    return can_manage_listing(actor, listing)
