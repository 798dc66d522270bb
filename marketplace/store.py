"""
marketplace/store.py

Listing entity store over SQLite.

One ListingStore wraps one request-scoped connection. Rows are converted to
the domain models at this boundary; callers never see sqlite3.Row.
Every sqlite3.Error is re-raised as StoreError.

Status updates can be made conditional on the status the caller validated
(expected_status). When another writer changed the status in between, the
UPDATE touches no row and InvalidState is raised.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from domains.listing.errors import InvalidState, NotFound, StoreError, ValidationError
from domains.listing.models.actor import Actor, Role
from domains.listing.models.listing import (
    Floor,
    Listing,
    ListingKind,
    ListingStatus,
    Project,
    Property,
    Quadrant,
)
from marketplace.config import IS_DEV


TABLES = {
    ListingKind.PROPERTY: "properties",
    ListingKind.PROJECT: "projects",
}

# Descriptive columns the owner or an admin may edit
EDITABLE_COLUMNS = {
    ListingKind.PROPERTY: {
        "title", "description", "price", "currency", "exchange_rate",
        "bedrooms", "bathrooms", "garage_spaces", "area",
        "property_type", "transaction_type",
        "location_state", "location_city", "location_neighborhood", "address",
        "latitude", "longitude", "features",
    },
    ListingKind.PROJECT: {
        "name", "description", "location", "latitude", "longitude",
    },
}

# Written only by the moderation workflow
WORKFLOW_COLUMNS = {"status", "rejection_message"}

# Never written after creation
IMMUTABLE_COLUMNS = {"id", "owner_agent_id", "agency_id", "created_at", "updated_at"}

QUADRANT_COLUMNS = (
    "custom_id", "type", "area", "bedrooms", "bathrooms",
    "price", "currency", "exchange_rate", "status", "active",
)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return uuid.uuid4().hex


def _db_value(value: Any) -> Any:
    """Enum members -> their value, lists -> JSON text."""
    if hasattr(value, "value"):
        return value.value
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value))
    return value


@dataclass(frozen=True)
class ListingScope:
    """
    Ownership scope for a listing query. None means unconstrained.

    - agent: own listings
    - agency admin: listings of their agency
    - super admin: everything
    - public catalog: APPROVED only
    """
    owner_agent_id: Optional[str] = None
    agency_id: Optional[str] = None
    status: Optional[ListingStatus] = None

    @classmethod
    def for_actor(cls, actor: Actor) -> "ListingScope":
        if actor.role == Role.SUPER_ADMIN:
            return cls()
        if actor.role == Role.AGENCY_ADMIN:
            # An admin without an agency sees nothing rather than everything
            return cls(agency_id=actor.agency_id or "")
        return cls(owner_agent_id=actor.id)

    @classmethod
    def public(cls) -> "ListingScope":
        return cls(status=ListingStatus.APPROVED)


class ListingStore:
    """Listing persistence for one connection."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # ---------------------------------------------------------
    # Row conversion
    # ---------------------------------------------------------

    @staticmethod
    def _property_from_row(row: sqlite3.Row) -> Property:
        data = dict(row)
        try:
            data["features"] = json.loads(data.get("features") or "[]")
        except (json.JSONDecodeError, TypeError):
            data["features"] = []
        for key in ("description", "location_state", "location_city",
                    "location_neighborhood", "address"):
            if data.get(key) is None:
                data[key] = ""
        return Property(**data)

    def _load_floors(self, project_ids: List[str]) -> Dict[str, List[Floor]]:
        floors_by_project: Dict[str, List[Floor]] = {pid: [] for pid in project_ids}
        if not project_ids:
            return floors_by_project

        marks = ",".join("?" for _ in project_ids)
        cur = self.conn.cursor()
        cur.execute(
            f"SELECT * FROM floors WHERE project_id IN ({marks}) ORDER BY number ASC",
            project_ids,
        )
        floor_rows = cur.fetchall()

        quadrants_by_floor: Dict[str, List[Quadrant]] = {row["id"]: [] for row in floor_rows}
        if floor_rows:
            floor_marks = ",".join("?" for _ in floor_rows)
            cur.execute(
                f"SELECT * FROM quadrants WHERE floor_id IN ({floor_marks}) ORDER BY created_at ASC, rowid ASC",
                [row["id"] for row in floor_rows],
            )
            for q in cur.fetchall():
                data = dict(q)
                floor_id = data.pop("floor_id")
                data.pop("created_at", None)
                data["active"] = bool(data.get("active"))
                quadrants_by_floor[floor_id].append(Quadrant(**data))

        for row in floor_rows:
            floors_by_project[row["project_id"]].append(
                Floor(
                    id=row["id"],
                    number=row["number"],
                    name=row["name"],
                    quadrants=quadrants_by_floor[row["id"]],
                )
            )
        return floors_by_project

    def _projects_from_rows(self, rows: Iterable[sqlite3.Row]) -> List[Project]:
        rows = list(rows)
        floors = self._load_floors([row["id"] for row in rows])
        projects = []
        for row in rows:
            data = dict(row)
            for key in ("description", "location"):
                if data.get(key) is None:
                    data[key] = ""
            projects.append(Project(floors=floors[row["id"]], **data))
        return projects

    def _from_rows(self, kind: ListingKind, rows: Iterable[sqlite3.Row]) -> List[Listing]:
        if kind == ListingKind.PROJECT:
            return self._projects_from_rows(rows)
        return [self._property_from_row(row) for row in rows]

    # ---------------------------------------------------------
    # Reads
    # ---------------------------------------------------------

    def find_listing(self, kind: ListingKind, listing_id: str) -> Optional[Listing]:
        kind = ListingKind(kind)
        try:
            cur = self.conn.cursor()
            cur.execute(f"SELECT * FROM {TABLES[kind]} WHERE id = ?", (listing_id,))
            row = cur.fetchone()
            if row is None:
                return None
            return self._from_rows(kind, [row])[0]
        except sqlite3.Error as e:
            raise self._store_error("find_listing", e)

    def list_listings(
        self,
        kind: ListingKind,
        scope: Optional[ListingScope] = None,
    ) -> List[Listing]:
        """Listings inside scope, newest first."""
        kind = ListingKind(kind)
        scope = scope or ListingScope()

        clauses = []
        params: List[Any] = []
        if scope.owner_agent_id is not None:
            clauses.append("owner_agent_id = ?")
            params.append(scope.owner_agent_id)
        if scope.agency_id is not None:
            clauses.append("agency_id = ?")
            params.append(scope.agency_id)
        if scope.status is not None:
            clauses.append("status = ?")
            params.append(ListingStatus(scope.status).value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        try:
            cur = self.conn.cursor()
            cur.execute(
                f"SELECT * FROM {TABLES[kind]} {where} ORDER BY created_at DESC",
                params,
            )
            return self._from_rows(kind, cur.fetchall())
        except sqlite3.Error as e:
            raise self._store_error("list_listings", e)

    def property_stats(self) -> Dict[str, Any]:
        """Counts per status and the summed price of approved properties."""
        stats: Dict[str, Any] = {"total": 0, "approved": 0, "pending": 0, "rejected": 0, "total_value": 0.0}
        try:
            cur = self.conn.cursor()
            cur.execute("SELECT status, COUNT(*) AS n, SUM(price) AS value FROM properties GROUP BY status")
            for row in cur.fetchall():
                key = str(row["status"]).lower()
                if key in stats:
                    stats[key] = row["n"]
                stats["total"] += row["n"]
                if row["status"] == ListingStatus.APPROVED.value:
                    stats["total_value"] = float(row["value"] or 0)
            return stats
        except sqlite3.Error as e:
            raise self._store_error("property_stats", e)

    def find_floor(self, floor_id: str) -> Optional[Dict[str, Any]]:
        try:
            cur = self.conn.cursor()
            cur.execute("SELECT id, project_id, number, name FROM floors WHERE id = ?", (floor_id,))
            row = cur.fetchone()
            return dict(row) if row else None
        except sqlite3.Error as e:
            raise self._store_error("find_floor", e)

    def find_actor(self, user_id: str) -> Optional[Actor]:
        try:
            cur = self.conn.cursor()
            cur.execute(
                "SELECT id, email, role, agency_id, is_active FROM users WHERE id = ?",
                (str(user_id),),
            )
            row = cur.fetchone()
        except sqlite3.Error as e:
            raise self._store_error("find_actor", e)
        if row is None:
            return None
        return Actor(
            id=row["id"],
            email=row["email"],
            role=row["role"] or Role.AGENT,
            agency_id=row["agency_id"],
            is_active=bool(row["is_active"]),
        )

    # ---------------------------------------------------------
    # Writes
    # ---------------------------------------------------------

    def update_listing(
        self,
        kind: ListingKind,
        listing_id: str,
        changes: Dict[str, Any],
        expected_status: Optional[ListingStatus] = None,
    ) -> Listing:
        """
        Apply changes to one listing and refresh updated_at.

        Args:
            kind: property or project
            listing_id: listing to update
            changes: column -> new value (editable or workflow columns only)
            expected_status: when set, the write only happens if the stored
                status still equals it

        Raises:
            NotFound: no such listing
            InvalidState: stored status no longer equals expected_status
            ValidationError: unknown or immutable column in changes, or a
                value the schema rejects (NOT NULL, CHECK)
            StoreError: database failure
        """
        kind = ListingKind(kind)
        locked = sorted(set(changes) & IMMUTABLE_COLUMNS)
        if locked:
            raise ValidationError(f"Fields are read-only: {', '.join(locked)}")
        allowed = EDITABLE_COLUMNS[kind] | WORKFLOW_COLUMNS
        bad = sorted(set(changes) - allowed)
        if bad:
            raise ValidationError(f"Fields cannot be updated: {', '.join(bad)}")

        assignments = [f"{column} = ?" for column in changes]
        params: List[Any] = [_db_value(value) for value in changes.values()]
        assignments.append("updated_at = ?")
        params.append(now_iso())

        sql = f"UPDATE {TABLES[kind]} SET {', '.join(assignments)} WHERE id = ?"
        params.append(listing_id)
        if expected_status is not None:
            sql += " AND status = ?"
            params.append(ListingStatus(expected_status).value)

        try:
            cur = self.conn.cursor()
            cur.execute(sql, params)
            updated = cur.rowcount
            self.conn.commit()
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            raise ValidationError(f"Invalid {kind.value} data: {e}")
        except sqlite3.Error as e:
            self.conn.rollback()
            raise self._store_error("update_listing", e)

        if updated == 0:
            current = self.find_listing(kind, listing_id)
            if current is None:
                raise NotFound(f"{kind.value.capitalize()} not found")
            raise InvalidState(
                f"{kind.value.capitalize()} status changed to {current.status.value} "
                f"while the request was processed"
            )

        if IS_DEV:
            print(f"[STORE] Updated {kind.value} {listing_id}: {sorted(changes)}")

        return self.find_listing(kind, listing_id)

    def delete_listing(self, kind: ListingKind, listing_id: str) -> bool:
        """Delete a listing and, for projects, its floors and quadrants. False if absent."""
        kind = ListingKind(kind)
        try:
            cur = self.conn.cursor()
            if kind == ListingKind.PROJECT:
                cur.execute(
                    "DELETE FROM quadrants WHERE floor_id IN (SELECT id FROM floors WHERE project_id = ?)",
                    (listing_id,),
                )
                cur.execute("DELETE FROM floors WHERE project_id = ?", (listing_id,))
            cur.execute(f"DELETE FROM {TABLES[kind]} WHERE id = ?", (listing_id,))
            deleted = cur.rowcount
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise self._store_error("delete_listing", e)

        if IS_DEV:
            print(f"[STORE] Deleted {kind.value} {listing_id}: rows={deleted}")
        return deleted > 0

    def create_property(self, data: Dict[str, Any], owner_agent_id: str, agency_id: str) -> Property:
        property_id = new_id()
        stamp = now_iso()
        columns = [c for c in sorted(EDITABLE_COLUMNS[ListingKind.PROPERTY]) if c in data]
        values = [_db_value(data[c]) for c in columns]
        columns += ["id", "status", "owner_agent_id", "agency_id", "created_at", "updated_at"]
        values += [property_id, ListingStatus.PENDING.value, owner_agent_id, agency_id, stamp, stamp]

        try:
            self.conn.execute(
                f"INSERT INTO properties ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
                values,
            )
            self.conn.commit()
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            raise ValidationError(f"Invalid property data: {e}")
        except sqlite3.Error as e:
            self.conn.rollback()
            raise self._store_error("create_property", e)

        if IS_DEV:
            print(f"[STORE] Created property {property_id} owner={owner_agent_id} agency={agency_id}")
        return self.find_listing(ListingKind.PROPERTY, property_id)

    def create_project(self, data: Dict[str, Any], owner_agent_id: str, agency_id: str) -> Project:
        """Insert a project with its nested floors/quadrants in one transaction."""
        project_id = new_id()
        stamp = now_iso()
        columns = [c for c in sorted(EDITABLE_COLUMNS[ListingKind.PROJECT]) if c in data]
        values = [_db_value(data[c]) for c in columns]
        columns += ["id", "status", "owner_agent_id", "agency_id", "created_at", "updated_at"]
        values += [project_id, ListingStatus.PENDING.value, owner_agent_id, agency_id, stamp, stamp]

        try:
            cur = self.conn.cursor()
            cur.execute(
                f"INSERT INTO projects ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
                values,
            )
            for floor in data.get("floors") or []:
                floor_id = self._insert_floor(cur, project_id, floor.get("number"), floor.get("name"))
                for quadrant in floor.get("quadrants") or []:
                    self._insert_quadrant(cur, floor_id, quadrant)
            self.conn.commit()
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            raise ValidationError(f"Invalid project data: {e}")
        except sqlite3.Error as e:
            self.conn.rollback()
            raise self._store_error("create_project", e)

        if IS_DEV:
            print(f"[STORE] Created project {project_id} owner={owner_agent_id} agency={agency_id}")
        return self.find_listing(ListingKind.PROJECT, project_id)

    def add_floor(
        self,
        project_id: str,
        number: int,
        name: Optional[str] = None,
        quadrants: Optional[List[Dict[str, Any]]] = None,
    ) -> Floor:
        """Insert a floor and its initial quadrants in one transaction."""
        try:
            cur = self.conn.cursor()
            floor_id = self._insert_floor(cur, project_id, number, name)
            for quadrant in quadrants or []:
                self._insert_quadrant(cur, floor_id, quadrant)
            cur.execute("UPDATE projects SET updated_at = ? WHERE id = ?", (now_iso(), project_id))
            self.conn.commit()
        except sqlite3.IntegrityError:
            self.conn.rollback()
            raise ValidationError(f"Floor {number} already exists in this project")
        except sqlite3.Error as e:
            self.conn.rollback()
            raise self._store_error("add_floor", e)

        floors = self._load_floors([project_id])[project_id]
        return next(floor for floor in floors if floor.id == floor_id)

    def add_quadrant(self, floor_id: str, data: Dict[str, Any]) -> Quadrant:
        try:
            cur = self.conn.cursor()
            quadrant_id = self._insert_quadrant(cur, floor_id, data)
            cur.execute(
                "UPDATE projects SET updated_at = ? WHERE id = (SELECT project_id FROM floors WHERE id = ?)",
                (now_iso(), floor_id),
            )
            self.conn.commit()
            cur.execute("SELECT * FROM quadrants WHERE id = ?", (quadrant_id,))
            row = dict(cur.fetchone())
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            raise ValidationError(f"Invalid quadrant data: {e}")
        except sqlite3.Error as e:
            self.conn.rollback()
            raise self._store_error("add_quadrant", e)

        row.pop("floor_id")
        row.pop("created_at", None)
        row["active"] = bool(row.get("active"))
        return Quadrant(**row)

    # ---------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------

    @staticmethod
    def _insert_floor(cur: sqlite3.Cursor, project_id: str, number: Any, name: Optional[str]) -> str:
        floor_id = new_id()
        cur.execute(
            "INSERT INTO floors (id, project_id, number, name, created_at) VALUES (?, ?, ?, ?, ?)",
            (floor_id, project_id, number, name, now_iso()),
        )
        return floor_id

    @staticmethod
    def _insert_quadrant(cur: sqlite3.Cursor, floor_id: str, data: Dict[str, Any]) -> str:
        quadrant_id = new_id()
        columns = [c for c in QUADRANT_COLUMNS if data.get(c) is not None]
        values = [_db_value(data[c]) for c in columns]
        columns += ["id", "floor_id", "created_at"]
        values += [quadrant_id, floor_id, now_iso()]
        cur.execute(
            f"INSERT INTO quadrants ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
            values,
        )
        return quadrant_id

    @staticmethod
    def _store_error(operation: str, error: sqlite3.Error) -> StoreError:
        # Always logged; the message returned to clients stays generic
        print(f"[STORE] {operation} failed: {error}")
        return StoreError("Database error")
