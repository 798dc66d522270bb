"""
Shared fixtures for marketplace tests.

Each test gets a fresh SQLite file under tmp_path, seeded with two agencies
and one user per role.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from marketplace import config
from marketplace.auth_context import create_access_token
from marketplace.db import get_db, init_db
from marketplace.events import status_event_bus
from marketplace.store import ListingStore

USERS = [
    # id, email, role, agency_id, is_active
    ("super", "super@test.com", "SUPER_ADMIN", None, 1),
    ("admin_a", "admin_a@test.com", "AGENCY_ADMIN", "agency_a", 1),
    ("admin_b", "admin_b@test.com", "AGENCY_ADMIN", "agency_b", 1),
    ("agent_a", "agent_a@test.com", "AGENT", "agency_a", 1),
    ("agent_a2", "agent_a2@test.com", "AGENT", "agency_a", 1),
    ("agent_b", "agent_b@test.com", "AGENT", "agency_b", 1),
    ("agent_nobody", "agent_nobody@test.com", "AGENT", None, 1),
    ("inactive", "inactive@test.com", "AGENT", "agency_a", 0),
]


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh database with seeded agencies and users."""
    monkeypatch.setattr(config, "DATABASE_PATH", str(tmp_path / "test.db"))
    init_db()

    conn = get_db()
    conn.execute("INSERT INTO agencies (id, name) VALUES ('agency_a', 'Agency A')")
    conn.execute("INSERT INTO agencies (id, name) VALUES ('agency_b', 'Agency B')")
    conn.executemany(
        "INSERT INTO users (id, email, role, agency_id, is_active) VALUES (?, ?, ?, ?, ?)",
        USERS,
    )
    conn.commit()
    conn.close()

    yield

    status_event_bus.clear_subscribers()


@pytest.fixture
def store(db):
    conn = get_db()
    try:
        yield ListingStore(conn)
    finally:
        conn.close()


@pytest.fixture
def client(db):
    from marketplace.main import app

    return TestClient(app)


def token_for(user_id: str) -> str:
    return create_access_token({"sub": user_id})


def auth(user_id: str) -> dict:
    return {"Authorization": f"Bearer {token_for(user_id)}"}


@pytest.fixture
def headers():
    """headers("agent_a") -> Authorization header for that seeded user."""
    return auth


def property_data(**overrides) -> dict:
    data = {
        "title": "Casa en Equipetrol",
        "description": "Amplia casa con jardín",
        "price": 250000,
        "currency": "BOLIVIANOS",
        "bedrooms": 3,
        "bathrooms": 2,
        "garage_spaces": 1,
        "area": 180,
        "property_type": "HOUSE",
        "transaction_type": "SALE",
        "location_state": "Santa Cruz",
        "location_city": "Santa Cruz de la Sierra",
        "location_neighborhood": "Equipetrol",
        "address": "Calle 1 #100",
        "features": ["jardín", "piscina"],
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_property(store):
    """Insert a property directly through the store; status/created_at may be forced."""
    def _make(owner="agent_a", agency="agency_a", status=None, message=None, created_at=None, **fields):
        prop = store.create_property(property_data(**fields), owner_agent_id=owner, agency_id=agency)
        updates = {}
        if status is not None:
            updates["status"] = status
        if message is not None:
            updates["rejection_message"] = message
        if created_at is not None:
            updates["created_at"] = created_at.isoformat()
        if updates:
            assignments = ", ".join(f"{k} = ?" for k in updates)
            store.conn.execute(
                f"UPDATE properties SET {assignments} WHERE id = ?",
                [*updates.values(), prop.id],
            )
            store.conn.commit()
        return store.find_listing("property", prop.id)

    return _make


def days_ago(n: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=n)
