"""HTTP tests for /parks."""

from __future__ import annotations

from sqlalchemy import text

from parkhub.models.models import Park, Tree, Volunteer
from parkhub.services import park_cascade
from parkhub.services.park_cascade import CASCADE_STEPS, DELETE, CascadeStep


class TestParkDependenciesEndpoint:
    def test_returns_counts_and_total(self, auth_headers, client, populated_park, director) -> None:
        park = populated_park()

        resp = client.get(f"/parks/{park.id}/dependencies", headers=auth_headers(director))

        assert resp.status_code == 200
        body = resp.json()
        assert body["park_id"] == park.id
        assert body["trees"] == 3
        assert body["tree_maintenances"] == 2
        assert body["users"] == 0
        assert body["total"] == 17

    def test_unknown_park_reports_zeros(self, auth_headers, client, director) -> None:
        resp = client.get("/parks/777/dependencies", headers=auth_headers(director))

        assert resp.status_code == 200
        assert resp.json()["total"] == 0

    def test_requires_authentication(self, client, make_park) -> None:
        park = make_park()

        assert client.get(f"/parks/{park.id}/dependencies").status_code == 401

    def test_rejects_non_numeric_id(self, auth_headers, client, director) -> None:
        resp = client.get("/parks/abc/dependencies", headers=auth_headers(director))

        assert resp.status_code == 422


class TestDeleteParkEndpoint:
    def test_deletes_park_and_dependents(self, auth_headers, client, db, populated_park, director) -> None:
        park = populated_park()
        headers = auth_headers(director)

        resp = client.delete(f"/parks/{park.id}", headers=headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["rows_deleted"]["trees"] == 3
        assert body["references_cleared"]["volunteers"] == 1
        assert body["categories_processed"][-1] == "park"
        assert client.get(f"/parks/{park.id}", headers=headers).status_code == 404
        db.expire_all()
        assert db.query(Tree).count() == 0
        assert db.query(Volunteer).one().preferred_park_id is None

    def test_unknown_park_is_404(self, auth_headers, client, director) -> None:
        resp = client.delete("/parks/4040", headers=auth_headers(director))

        assert resp.status_code == 404
        assert resp.json()["error_code"] == "NOT_FOUND"

    def test_zero_id_is_rejected(self, auth_headers, client, director) -> None:
        assert client.delete("/parks/0", headers=auth_headers(director)).status_code == 422

    def test_requires_director(self, auth_headers, client, make_user, populated_park) -> None:
        park = populated_park()
        manager = make_user("gestor", "gestor@parks.gob.mx", role="manager")

        resp = client.delete(f"/parks/{park.id}", headers=auth_headers(manager))

        assert resp.status_code == 403

    def test_admin_may_delete(self, auth_headers, client, make_user, make_park) -> None:
        park = make_park()
        admin = make_user("root", "root@parks.gob.mx", role="admin")

        assert client.delete(f"/parks/{park.id}", headers=auth_headers(admin)).status_code == 200

    def test_failed_cascade_returns_500_and_keeps_data(
        self, auth_headers, client, db, populated_park, director, monkeypatch
    ) -> None:
        park = populated_park()
        broken = list(CASCADE_STEPS)
        broken[5] = CascadeStep(
            "images",
            DELETE,
            lambda pid: text("DELETE FROM missing_images WHERE park_id = :pid").bindparams(pid=pid),
        )
        monkeypatch.setattr(park_cascade, "CASCADE_STEPS", tuple(broken))

        resp = client.delete(f"/parks/{park.id}", headers=auth_headers(director))

        assert resp.status_code == 500
        assert resp.json()["error_code"] == "TRANSACTION_FAILED"
        db.expire_all()
        assert db.get(Park, park.id) is not None
        assert db.query(Tree).count() == 3


class TestParkCrud:
    def test_create_list_and_update(self, auth_headers, client, director) -> None:
        headers = auth_headers(director)

        created = client.post("/parks", json={"name": "Parque Morelos", "park_type": "urbano", "postal_code": ""},
                              headers=headers)
        assert created.status_code == 201
        park = created.json()
        assert park["postal_code"] is None

        updated = client.put(f"/parks/{park['id']}", json={"opening_hours": "06:00-20:00"}, headers=headers)
        assert updated.status_code == 200
        assert updated.json()["name"] == "Parque Morelos"
        assert updated.json()["opening_hours"] == "06:00-20:00"

        listed = client.get("/parks", params={"q": "morelos"}, headers=headers)
        assert [p["id"] for p in listed.json()] == [park["id"]]

    def test_citizen_cannot_create(self, auth_headers, client, make_user) -> None:
        citizen = make_user("vecino", "vecino@example.org", role="ciudadano")

        resp = client.post("/parks", json={"name": "Parque X"}, headers=auth_headers(citizen))

        assert resp.status_code == 403


class TestAppWiring:
    def test_healthz_echoes_request_id(self, client) -> None:
        resp = client.get("/healthz", headers={"X-Request-ID": "abc-123"})

        assert resp.json() == {"status": "ok"}
        assert resp.headers["X-Request-ID"] == "abc-123"

    def test_request_id_generated_when_absent(self, client) -> None:
        assert client.get("/healthz").headers["X-Request-ID"]
