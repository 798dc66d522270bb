# client/test_listing_views.py
# Unit tests for dashboard view state (backend calls mocked)

import threading
from unittest.mock import MagicMock

import pytest

import client.listing_views as listing_views
from client.api_client import ApiSession
from client.listing_views import ListingView
from domains.listing.errors import Forbidden, StoreError, ValidationError


def item(n, status="PENDING", price=250000, **extra):
    data = {
        "id": f"p{n}",
        "status": status,
        "rejection_message": None,
        "owner_agent_id": "agent_a",
        "agency_id": "agency_a",
        "created_at": f"2024-05-{n:02d}T10:00:00+00:00",
        "updated_at": f"2024-05-{n:02d}T10:00:00+00:00",
        "title": f"Casa {n}",
        "price": price,
        "area": 100,
        "property_type": "HOUSE",
        "transaction_type": "SALE",
        "address": "Av. Busch",
        "status_label": "Pendiente",
    }
    data.update(extra)
    return data


SNAPSHOT = {
    "items": [
        item(3, "PENDING", 100000),
        item(2, "APPROVED", 300000, address="Vila Madalena 10"),
        item(1, "REJECTED", 500000),
    ],
    "counts": {"pending": 1, "approved": 1, "rejected": 1},
}


@pytest.fixture
def backend(monkeypatch):
    fake = MagicMock(return_value=SNAPSHOT)
    monkeypatch.setattr(listing_views, "api_request", fake)
    return fake


@pytest.fixture
def view(backend):
    v = ListingView(ApiSession(token="t", base_url="http://127.0.0.1:8000"))
    v.refresh()
    return v


def test_refresh_loads_snapshot(view, backend):
    assert view.loaded
    assert [p.id for p in view.listings] == ["p3", "p2", "p1"]
    backend.assert_called_with(view.session, "GET", "/api/properties/dashboard")


def test_filter_keeps_counts_unfiltered(view):
    visible = view.set_filter({"minPrice": "200000"})
    assert [p.id for p in visible] == ["p2", "p1"]
    assert view.counts() == {"pending": 1, "approved": 1, "rejected": 1}


def test_search_and_clear(view):
    assert [p.id for p in view.set_filter({"search": "vila"})] == ["p2"]
    assert len(view.clear_filter()) == 3


def test_invalid_filter_keeps_previous(view):
    view.set_filter({"status": "APPROVED"})
    with pytest.raises(ValidationError):
        view.set_filter({"minPrice": "10", "maxPrice": "5"})
    assert [p.id for p in view.visible()] == ["p2"]


def test_rows_carry_status_badges(view):
    rows = view.rows()
    assert rows[0]["status_label"] == "Pendiente"
    assert rows[1]["status_variant"] == "default"
    assert rows[2]["status_variant"] == "destructive"


def test_action_refetches(view, backend):
    backend.reset_mock()
    view.reject("p3", "Faltan fotos")

    calls = [c.args[1:] for c in backend.call_args_list]
    assert calls[0] == ("POST", "/api/properties/p3/reject")
    assert backend.call_args_list[0].kwargs["json"] == {"rejectionMessage": "Faltan fotos"}
    assert calls[1] == ("GET", "/api/properties/dashboard")


def test_review_body(view, backend):
    backend.reset_mock()
    view.review("p3", "REJECTED", "Dirección")
    assert backend.call_args_list[0].kwargs["json"] == {
        "id": "p3", "status": "REJECTED", "rejectionReason": "Dirección",
    }


def test_failed_action_does_not_refetch(view, backend):
    backend.reset_mock()
    backend.side_effect = Forbidden("Only agency admins and super admins can approve properties")
    with pytest.raises(Forbidden):
        view.approve("p3")
    assert backend.call_count == 1
    assert view.loaded


def test_project_view_paths(backend):
    backend.return_value = {"items": [], "counts": {}}
    v = ListingView(ApiSession(base_url="http://127.0.0.1:8000"), kind="project")
    v.refresh()
    v.resend("j1")
    assert backend.call_args_list[1].args[1:] == ("POST", "/api/projects/j1/resend")


def test_stale_refresh_discarded(monkeypatch):
    """A slow first fetch finishing after a newer one must not overwrite it."""
    first_started = threading.Event()
    release_first = threading.Event()
    responses = iter([
        {"items": [item(1)]},
        {"items": [item(1), item(2)]},
    ])

    def fake_request(session, method, path, **kwargs):
        body = next(responses)
        if len(body["items"]) == 1:
            first_started.set()
            release_first.wait(timeout=5)
        return body

    monkeypatch.setattr(listing_views, "api_request", fake_request)
    v = ListingView(ApiSession(base_url="http://127.0.0.1:8000"))

    results = {}
    slow = threading.Thread(target=lambda: results.setdefault("slow", v.refresh()))
    slow.start()
    first_started.wait(timeout=5)

    results["fast"] = v.refresh()
    release_first.set()
    slow.join(timeout=5)

    assert results == {"fast": True, "slow": False}
    assert [p.id for p in v.listings] == ["p1", "p2"]


def test_committed_action_survives_failed_refresh(view, backend):
    def fake_request(session, method, path, **kwargs):
        if method == "DELETE":
            return {"message": "Property deleted successfully"}
        raise StoreError("Database error")

    backend.side_effect = fake_request
    assert view.delete("p1") == {"message": "Property deleted successfully"}
    assert not view.loaded
    assert isinstance(view.refresh_error, StoreError)

    backend.side_effect = None
    assert view.refresh()
    assert view.loaded and view.refresh_error is None
