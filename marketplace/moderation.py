"""
marketplace/moderation.py

Listing moderation workflow.

    PENDING --approve--> APPROVED
    PENDING --reject---> REJECTED
    APPROVED --reject--> REJECTED
    REJECTED --resend--> PENDING
    any --permanent_delete--> (gone)

Checks run in a fixed order for every operation:
1. listing exists (NotFound)
2. actor's role/ownership allows it (Forbidden)
3. current status allows it (InvalidState)

A failed operation leaves the listing untouched. Each successful
transition is published on the status event bus.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from domains.listing.errors import Forbidden, InvalidState, NotFound, ValidationError
from domains.listing.models.actor import Actor, Role
from domains.listing.models.listing import Listing, ListingKind, ListingStatus
from marketplace.config import IS_DEV
from marketplace.events import StatusChangeEvent, StatusEventBus, status_event_bus
from marketplace.rbac import belongs_to_agency, can_manage_listing, can_moderate, is_owner
from marketplace.store import EDITABLE_COLUMNS, ListingStore


REJECTABLE = (ListingStatus.PENDING, ListingStatus.APPROVED)


def normalize_message(message: Optional[str]) -> Optional[str]:
    """Trim a rejection message; blank becomes None."""
    if message is None:
        return None
    message = message.strip()
    return message or None


class ModerationWorkflow:
    """Status transitions for one listing kind (properties or projects)."""

    def __init__(
        self,
        store: ListingStore,
        kind: ListingKind = ListingKind.PROPERTY,
        bus: Optional[StatusEventBus] = None,
    ):
        self.store = store
        self.kind = ListingKind(kind)
        self.bus = bus if bus is not None else status_event_bus

    @property
    def noun(self) -> str:
        return "Property" if self.kind == ListingKind.PROPERTY else "Project"

    @property
    def plural(self) -> str:
        return "properties" if self.kind == ListingKind.PROPERTY else "projects"

    # ---------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------

    def _load(self, listing_id: str) -> Listing:
        if not listing_id or not str(listing_id).strip():
            raise ValidationError(f"{self.noun} id is required")
        listing = self.store.find_listing(self.kind, listing_id)
        if listing is None:
            raise NotFound(f"{self.noun} not found")
        return listing

    def _require_moderator(self, actor: Actor, listing: Listing, verb: str) -> None:
        if can_moderate(actor, listing):
            return
        print(f"[MODERATION] Denied {verb}: actor={actor.id} role={actor.role} "
              f"{self.kind.value}={listing.id}")
        if actor.role == Role.AGENCY_ADMIN and not belongs_to_agency(actor, listing.agency_id):
            raise Forbidden(f"You can only {verb} {self.plural} from your agency")
        raise Forbidden(f"Only agency admins and super admins can {verb} {self.plural}")

    def _publish(
        self,
        listing_id: str,
        old_status: ListingStatus,
        new_status: Optional[ListingStatus],
        actor: Actor,
        rejection_message: Optional[str] = None,
    ) -> None:
        self.bus.publish(
            StatusChangeEvent(
                listing_kind=self.kind.value,
                listing_id=listing_id,
                old_status=ListingStatus(old_status).value,
                new_status=ListingStatus(new_status).value if new_status is not None else None,
                rejection_message=rejection_message,
                changed_by=actor.id,
                timestamp=datetime.now(timezone.utc),
            )
        )

    def _transition(
        self,
        listing: Listing,
        actor: Actor,
        new_status: ListingStatus,
        rejection_message: Optional[str] = None,
        extra_changes: Optional[Dict[str, Any]] = None,
    ) -> Listing:
        changes: Dict[str, Any] = dict(extra_changes or {})
        changes["status"] = new_status
        changes["rejection_message"] = rejection_message

        # Conditional on the status validated above
        updated = self.store.update_listing(
            self.kind, listing.id, changes, expected_status=listing.status
        )

        if IS_DEV:
            print(f"[MODERATION] {self.kind.value}={listing.id} {listing.status.value} -> "
                  f"{new_status.value} by actor={actor.id}")

        self._publish(listing.id, listing.status, new_status, actor, rejection_message)
        return updated

    # ---------------------------------------------------------
    # Operations
    # ---------------------------------------------------------

    def approve(self, listing_id: str, actor: Actor) -> Listing:
        """PENDING -> APPROVED. Clears any rejection message."""
        listing = self._load(listing_id)
        self._require_moderator(actor, listing, "approve")
        if listing.status != ListingStatus.PENDING:
            raise InvalidState(
                f"Only pending {self.plural} can be approved "
                f"(current status: {listing.status.value})"
            )
        return self._transition(listing, actor, ListingStatus.APPROVED)

    def reject(self, listing_id: str, actor: Actor, message: Optional[str] = None) -> Listing:
        """PENDING or APPROVED -> REJECTED, storing the optional message."""
        listing = self._load(listing_id)
        self._require_moderator(actor, listing, "reject")
        if listing.status not in REJECTABLE:
            raise InvalidState(f"{self.noun} is already rejected")
        return self._transition(
            listing, actor, ListingStatus.REJECTED, rejection_message=normalize_message(message)
        )

    def resend(self, listing_id: str, actor: Actor) -> Listing:
        """REJECTED -> PENDING. Only the owning agent may resend."""
        listing = self._load(listing_id)
        if actor.role != Role.AGENT or not is_owner(actor, listing):
            print(f"[MODERATION] Denied resend: actor={actor.id} role={actor.role} "
                  f"{self.kind.value}={listing.id}")
            raise Forbidden(f"Only the agent who created this {self.kind.value} can resend it")
        if listing.status != ListingStatus.REJECTED:
            raise InvalidState(
                f"Only rejected {self.plural} can be resent "
                f"(current status: {listing.status.value})"
            )
        return self._transition(listing, actor, ListingStatus.PENDING)

    def permanent_delete(self, listing_id: str, actor: Actor) -> None:
        """Irreversible removal. No status precondition."""
        listing = self._load(listing_id)
        if not can_manage_listing(actor, listing):
            print(f"[MODERATION] Denied delete: actor={actor.id} role={actor.role} "
                  f"{self.kind.value}={listing.id}")
            raise Forbidden(f"You do not have permission to delete this {self.kind.value}")

        if not self.store.delete_listing(self.kind, listing.id):
            # Deleted by a concurrent request after the lookup
            raise NotFound(f"{self.noun} not found")

        print(f"[MODERATION] Deleted {self.kind.value}={listing.id} by actor={actor.id}")
        self._publish(listing.id, listing.status, None, actor)

    def review(
        self,
        listing_id: str,
        actor: Actor,
        decision: Any,
        reason: Optional[str] = None,
    ) -> Listing:
        """Approve or reject in one call, as the admin review queue submits it."""
        try:
            decision = ListingStatus(decision)
        except ValueError:
            raise ValidationError("status must be APPROVED or REJECTED")

        if decision == ListingStatus.APPROVED:
            return self.approve(listing_id, actor)
        if decision == ListingStatus.REJECTED:
            return self.reject(listing_id, actor, reason)
        raise ValidationError("status must be APPROVED or REJECTED")

    def edit(self, listing_id: str, actor: Actor, changes: Dict[str, Any]) -> Listing:
        """
        Update descriptive fields.

        When the owning agent edits a REJECTED listing it goes back to PENDING
        with the rejection message cleared.

        Raises:
            ValidationError: no changes, or a field that is not editable
            NotFound / Forbidden: as for every operation
        """
        listing = self._load(listing_id)
        if not can_manage_listing(actor, listing):
            print(f"[MODERATION] Denied edit: actor={actor.id} role={actor.role} "
                  f"{self.kind.value}={listing.id}")
            raise Forbidden(f"You do not have permission to edit this {self.kind.value}")

        not_editable = sorted(set(changes) - EDITABLE_COLUMNS[self.kind])
        if not_editable:
            raise ValidationError(f"Fields cannot be edited: {', '.join(not_editable)}")
        if not changes:
            raise ValidationError("No fields to update")

        if (
            actor.role == Role.AGENT
            and is_owner(actor, listing)
            and listing.status == ListingStatus.REJECTED
        ):
            return self._transition(listing, actor, ListingStatus.PENDING, extra_changes=changes)

        updated = self.store.update_listing(self.kind, listing.id, changes)
        if IS_DEV:
            print(f"[MODERATION] Edited {self.kind.value}={listing.id} by actor={actor.id}: {sorted(changes)}")
        return updated
