"""
Project endpoint tests: nested floors/quadrants, moderation, cascade delete.

Run: pytest marketplace/test_project_routes.py -v
"""

import pytest


def project_body(**overrides):
    body = {
        "name": "Torre Equipetrol",
        "description": "Edificio de 12 pisos",
        "location": "Av. San Martín, Santa Cruz",
        "floors": [
            {
                "number": 1,
                "name": "Planta baja",
                "quadrants": [
                    {"customId": "1A", "type": "LOCAL_COMERCIAL", "area": 60, "price": 150000},
                    {"customId": "1B", "type": "OFICINA", "area": 45, "price": 90000, "status": "RESERVED"},
                ],
            },
            {"number": 2, "quadrants": [{"customId": "2A", "area": 85, "bedrooms": 2, "price": 120000}]},
        ],
    }
    body.update(overrides)
    return body


@pytest.fixture
def project(client, headers):
    response = client.post("/api/projects", json=project_body(), headers=headers("agent_a"))
    assert response.status_code == 201
    return response.json()["item"]


class TestCreateProject:
    def test_nested_floors_and_quadrants(self, project):
        assert project["status"] == "PENDING"
        assert project["owner_agent_id"] == "agent_a"
        assert [floor["number"] for floor in project["floors"]] == [1, 2]
        assert project["floors"][0]["quadrants"][0]["custom_id"] == "1A"
        assert project["quadrant_counts"] == {"total": 3, "available": 2, "unavailable": 0, "reserved": 1}

    def test_duplicate_floor_numbers_rejected(self, client, headers):
        body = project_body(floors=[{"number": 1}, {"number": 1}])
        response = client.post("/api/projects", json=body, headers=headers("agent_a"))
        assert response.status_code == 400

    def test_admin_cannot_create(self, client, headers):
        assert client.post("/api/projects", json=project_body(), headers=headers("admin_a")).status_code == 403


class TestFloorsAndQuadrants:
    def test_owner_adds_floor(self, client, headers, project):
        response = client.post(
            f"/api/projects/{project['id']}/floors",
            json={"number": 3, "quadrants": [{"customId": "3A", "area": 90, "price": 130000}]},
            headers=headers("agent_a"),
        )
        assert response.status_code == 201
        floors = response.json()["item"]["floors"]
        assert [floor["number"] for floor in floors] == [1, 2, 3]
        assert floors[2]["quadrants"][0]["custom_id"] == "3A"

    def test_duplicate_floor_number(self, client, headers, project):
        response = client.post(
            f"/api/projects/{project['id']}/floors", json={"number": 1}, headers=headers("agent_a")
        )
        assert response.status_code == 400
        assert "already exists" in response.json()["error"]

    def test_admin_of_agency_can_add_floor(self, client, headers, project):
        response = client.post(
            f"/api/projects/{project['id']}/floors", json={"number": 7}, headers=headers("admin_a")
        )
        assert response.status_code == 201

    @pytest.mark.parametrize("user", ["agent_a2", "admin_b", "agent_b"])
    def test_others_cannot_add_floor(self, client, headers, project, user):
        response = client.post(
            f"/api/projects/{project['id']}/floors", json={"number": 9}, headers=headers(user)
        )
        assert response.status_code == 403

    def test_add_quadrant(self, client, headers, project):
        floor_id = project["floors"][1]["id"]
        response = client.post(
            f"/api/projects/floors/{floor_id}/quadrants",
            json={"customId": "2B", "type": "PARQUEO", "area": 12, "price": 15000},
            headers=headers("agent_a"),
        )
        assert response.status_code == 201
        quadrants = response.json()["item"]["floors"][1]["quadrants"]
        assert [q["custom_id"] for q in quadrants] == ["2A", "2B"]

    def test_add_quadrant_unknown_floor(self, client, headers):
        response = client.post(
            "/api/projects/floors/nope/quadrants",
            json={"customId": "X", "area": 10, "price": 1},
            headers=headers("agent_a"),
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Floor not found"}

    def test_add_floor_unknown_project(self, client, headers):
        response = client.post("/api/projects/nope/floors", json={"number": 1}, headers=headers("agent_a"))
        assert response.status_code == 404


class TestProjectModeration:
    def test_full_cycle(self, client, headers, project):
        pid = project["id"]
        rejected = client.post(
            f"/api/projects/{pid}/reject", json={"rejectionMessage": "Faltan planos"}, headers=headers("admin_a")
        )
        assert rejected.json()["item"]["status"] == "REJECTED"

        resent = client.post(f"/api/projects/{pid}/resend", headers=headers("agent_a"))
        assert resent.json()["item"]["status"] == "PENDING"
        assert resent.json()["item"]["rejection_message"] is None

        approved = client.post(f"/api/projects/{pid}/approve", headers=headers("super"))
        assert approved.json()["item"]["status"] == "APPROVED"

        again = client.post(f"/api/projects/{pid}/approve", headers=headers("super"))
        assert again.status_code == 409

    def test_pending_queue_and_review(self, client, headers, project):
        queue = client.get("/api/projects/approve", headers=headers("admin_a")).json()
        assert [item["id"] for item in queue["items"]] == [project["id"]]
        assert client.get("/api/projects/approve", headers=headers("admin_b")).json()["total"] == 0

        response = client.post(
            "/api/projects/approve", json={"id": project["id"], "status": "APPROVED"}, headers=headers("admin_a")
        )
        assert response.json()["item"]["status"] == "APPROVED"

    def test_public_visibility(self, client, headers, project):
        assert client.get(f"/api/projects/{project['id']}").status_code == 404
        assert client.get("/api/projects").json()["total"] == 0

        client.post(f"/api/projects/{project['id']}/approve", headers=headers("admin_a"))
        assert client.get(f"/api/projects/{project['id']}").status_code == 200
        assert client.get("/api/projects").json()["total"] == 1

    def test_price_bound_excludes_projects(self, client, headers, project):
        client.post(f"/api/projects/{project['id']}/approve", headers=headers("admin_a"))
        assert client.get("/api/projects", params={"minPrice": 0}).json()["total"] == 0

    def test_dashboard(self, client, headers, project):
        body = client.get("/api/projects/dashboard", headers=headers("agent_a")).json()
        assert body["total"] == 1
        assert body["counts"] == {"pending": 1, "approved": 0, "rejected": 0}
        assert client.get("/api/projects/dashboard", headers=headers("agent_b")).json()["total"] == 0

    def test_edit_rejected_resubmits(self, client, headers, project):
        client.post(f"/api/projects/{project['id']}/reject", headers=headers("admin_a"))
        response = client.put(
            f"/api/projects/{project['id']}", json={"name": "Torre Equipetrol II"}, headers=headers("agent_a")
        )
        item = response.json()["item"]
        assert item["name"] == "Torre Equipetrol II"
        assert item["status"] == "PENDING"

    def test_delete_cascades(self, client, headers, project, store):
        response = client.delete(f"/api/projects/{project['id']}", headers=headers("admin_a"))
        assert response.status_code == 200
        assert store.find_listing("project", project["id"]) is None
        assert store.conn.execute("SELECT COUNT(*) FROM floors").fetchone()[0] == 0
        assert store.conn.execute("SELECT COUNT(*) FROM quadrants").fetchone()[0] == 0

    def test_null_name_is_400(self, client, headers, project):
        response = client.put(f"/api/projects/{project['id']}", json={"name": None}, headers=headers("agent_a"))
        assert response.status_code == 400
        assert client.get(f"/api/projects/{project['id']}", headers=headers("agent_a")).json()["item"]["name"]
