"""Integration tests for the /api/v1/cuidotecas, /api/v1/enrollments and
/api/v1/cuidador-enrollments endpoints."""

import pytest_asyncio

CUIDOTECA = {
    "name": "Cantinho Feliz",
    "hours": "08:00-12:00",
    "days": ["monday", "wednesday"],
    "max_capacity": 10,
    "min_age": 2,
    "max_age": 6,
    "assigned_caretakers": ["Dona Rosa"],
}


@pytest_asyncio.fixture()
async def campus(client, registered_institution, registered_parent, registered_cuidador, link):
    """Parent and cuidador linked to the institution, which owns one cuidoteca.
    The parent has one four-year-old child."""
    await link(registered_parent, registered_institution)
    await link(registered_cuidador, registered_institution)

    resp = await client.post(
        "/api/v1/cuidotecas/", headers=registered_institution["headers"], json=CUIDOTECA
    )
    assert resp.status_code == 201, resp.text
    child = await client.post(
        "/api/v1/children/", headers=registered_parent["headers"], json={"name": "Lia", "age": 4}
    )
    return {
        "institution": registered_institution,
        "parent": registered_parent,
        "cuidador": registered_cuidador,
        "cuidoteca_id": resp.json()["id"],
        "child_id": child.json()["id"],
    }


async def _enroll(client, campus, days=("monday",)):
    return await client.post("/api/v1/enrollments/", headers=campus["parent"]["headers"], json={
        "cuidoteca_id": campus["cuidoteca_id"],
        "child_id": campus["child_id"],
        "requested_days": list(days),
        "requested_hours": "08:00-10:00",
    })


class TestCuidotecas:
    async def test_create_notifies_linked_users(self, client, campus):
        resp = await client.get("/api/v1/notifications/", headers=campus["parent"]["headers"])
        (note,) = resp.json()
        assert note["type"] == "cuidoteca_created"
        assert note["cuidoteca_id"] == campus["cuidoteca_id"]
        assert "Cantinho Feliz" in note["message"]

    async def test_only_institutions_create(self, client, registered_parent):
        resp = await client.post(
            "/api/v1/cuidotecas/", headers=registered_parent["headers"], json=CUIDOTECA
        )
        assert resp.status_code == 403

    async def test_age_range_validated(self, client, registered_institution):
        resp = await client.post(
            "/api/v1/cuidotecas/",
            headers=registered_institution["headers"],
            json={**CUIDOTECA, "min_age": 7, "max_age": 3},
        )
        assert resp.status_code == 422

    async def test_needs_at_least_one_day(self, client, registered_institution):
        resp = await client.post(
            "/api/v1/cuidotecas/",
            headers=registered_institution["headers"],
            json={**CUIDOTECA, "days": []},
        )
        assert resp.status_code == 422

    async def test_listing_is_scoped(self, client, campus, register, coordinator):
        url = "/api/v1/cuidotecas/"
        stranger = await register("parent", "Sem Vínculo")

        linked = await client.get(url, headers=campus["parent"]["headers"])
        assert [c["id"] for c in linked.json()] == [campus["cuidoteca_id"]]

        assert (await client.get(url, headers=stranger["headers"])).json() == []

        everything = await client.get(url, headers=coordinator["headers"])
        assert [c["id"] for c in everything.json()] == [campus["cuidoteca_id"]]

    async def test_update_and_delete(self, client, campus, register):
        inst_headers = campus["institution"]["headers"]
        url = f"/api/v1/cuidotecas/{campus['cuidoteca_id']}"

        resp = await client.put(url, headers=inst_headers, json={"max_capacity": 15, "hours": None})
        assert resp.status_code == 200
        assert resp.json()["max_capacity"] == 15
        assert resp.json()["hours"] == "08:00-12:00"

        rival = await register("institution", "Outra")
        resp = await client.put(url, headers=rival["headers"], json={"max_capacity": 1})
        assert resp.status_code == 403

        resp = await client.delete(url, headers=inst_headers)
        assert resp.status_code == 204
        resp = await client.get(url, headers=inst_headers)
        assert resp.status_code == 404

    async def test_update_rejects_inverted_ages(self, client, campus):
        resp = await client.put(
            f"/api/v1/cuidotecas/{campus['cuidoteca_id']}",
            headers=campus["institution"]["headers"],
            json={"min_age": 8},
        )
        assert resp.status_code == 400
        assert resp.json()["kind"] == "invalid_state"


class TestEnrollments:
    async def test_enroll_and_approve(self, client, campus):
        resp = await _enroll(client, campus)
        assert resp.status_code == 201, resp.text
        enrollment_id = resp.json()["id"]
        assert resp.json()["status"] == "pending"

        inst_headers = campus["institution"]["headers"]
        pending = await client.get("/api/v1/enrollments/pending", headers=inst_headers)
        (row,) = pending.json()
        assert row["child"]["name"] == "Lia"
        assert row["user"]["id"] == campus["parent"]["user_id"]

        detail = await client.get(
            f"/api/v1/cuidotecas/{campus['cuidoteca_id']}", headers=inst_headers
        )
        assert [c["enrollment_id"] for c in detail.json()["pending_children"]] == [enrollment_id]

        parent_view = await client.get(
            f"/api/v1/cuidotecas/{campus['cuidoteca_id']}", headers=campus["parent"]["headers"]
        )
        assert parent_view.json()["pending_children"] == []

        resp = await client.post(
            f"/api/v1/enrollments/{enrollment_id}/approve", headers=inst_headers
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "confirmed"

        mine = await client.get("/api/v1/enrollments/mine", headers=campus["parent"]["headers"])
        (row,) = mine.json()
        assert row["status"] == "confirmed"
        assert row["user"]["id"] == campus["institution"]["user_id"]

        listing = await client.get("/api/v1/cuidotecas/", headers=campus["parent"]["headers"])
        assert listing.json()[0]["confirmed_count"] == 1

        notes = await client.get("/api/v1/notifications/", headers=campus["parent"]["headers"])
        assert notes.json()[0]["type"] == "enrollment_update"
        assert notes.json()[0]["message"] == (
            "A matrícula de Lia na cuidoteca Cantinho Feliz foi aprovada"
        )

    async def test_age_out_of_range(self, client, campus):
        child = await client.post(
            "/api/v1/children/", headers=campus["parent"]["headers"], json={"name": "Davi", "age": 9}
        )
        campus = {**campus, "child_id": child.json()["id"]}

        resp = await _enroll(client, campus)
        assert resp.status_code == 400
        assert resp.json()["kind"] == "age_out_of_range"
        assert resp.json()["detail"] == (
            "Davi tem 9 anos, mas esta cuidoteca aceita crianças de 2 a 6 anos"
        )

    async def test_day_not_offered(self, client, campus):
        resp = await _enroll(client, campus, days=("sunday",))
        assert resp.status_code == 400
        assert resp.json()["kind"] == "invalid_state"

    async def test_cuidador_cannot_enroll_child(self, client, campus):
        resp = await client.post("/api/v1/enrollments/", headers=campus["cuidador"]["headers"], json={
            "cuidoteca_id": campus["cuidoteca_id"],
            "child_id": campus["child_id"],
            "requested_days": ["monday"],
            "requested_hours": "08:00-10:00",
        })
        assert resp.status_code == 403

    async def test_reject_then_approve_fails(self, client, campus):
        enrollment_id = (await _enroll(client, campus)).json()["id"]
        inst_headers = campus["institution"]["headers"]

        resp = await client.post(f"/api/v1/enrollments/{enrollment_id}/reject", headers=inst_headers)
        assert resp.json()["status"] == "cancelled"

        resp = await client.post(f"/api/v1/enrollments/{enrollment_id}/approve", headers=inst_headers)
        assert resp.status_code == 400

    async def test_parent_cancels(self, client, campus):
        enrollment_id = (await _enroll(client, campus)).json()["id"]
        resp = await client.delete(
            f"/api/v1/enrollments/{enrollment_id}", headers=campus["parent"]["headers"]
        )
        assert resp.status_code == 204

        resp = await client.get(
            "/api/v1/enrollments/institution", headers=campus["institution"]["headers"]
        )
        assert resp.json() == []


class TestCuidadorEnrollments:
    async def test_apply_and_approve(self, client, campus):
        resp = await client.post(
            "/api/v1/cuidador-enrollments/",
            headers=campus["cuidador"]["headers"],
            json={
                "cuidoteca_id": campus["cuidoteca_id"],
                "requested_days": ["wednesday"],
                "requested_hours": "08:00-12:00",
            },
        )
        assert resp.status_code == 201, resp.text
        enrollment_id = resp.json()["id"]

        inst_headers = campus["institution"]["headers"]
        pending = await client.get("/api/v1/cuidador-enrollments/pending", headers=inst_headers)
        assert [e["id"] for e in pending.json()] == [enrollment_id]

        resp = await client.post(
            f"/api/v1/cuidador-enrollments/{enrollment_id}/approve", headers=inst_headers
        )
        assert resp.json()["status"] == "confirmed"

        detail = await client.get(
            f"/api/v1/cuidotecas/{campus['cuidoteca_id']}", headers=campus["cuidador"]["headers"]
        )
        (entry,) = detail.json()["confirmed_cuidadores"]
        assert entry["cuidador"]["id"] == campus["cuidador"]["user_id"]

        mine = await client.get(
            "/api/v1/cuidador-enrollments/mine", headers=campus["cuidador"]["headers"]
        )
        assert mine.json()[0]["user"]["id"] == campus["institution"]["user_id"]

    async def test_parent_cannot_apply(self, client, campus):
        resp = await client.post(
            "/api/v1/cuidador-enrollments/",
            headers=campus["parent"]["headers"],
            json={
                "cuidoteca_id": campus["cuidoteca_id"],
                "requested_days": ["monday"],
                "requested_hours": "08:00-12:00",
            },
        )
        assert resp.status_code == 403
