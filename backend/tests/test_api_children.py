"""Integration tests for the /api/v1/children endpoints."""


class TestChildren:
    async def test_create_and_list(self, client, registered_parent):
        headers = registered_parent["headers"]
        resp = await client.post("/api/v1/children/", headers=headers, json={
            "name": "Lia", "age": 4, "special_needs": "Alergia a amendoim",
        })
        assert resp.status_code == 201, resp.text
        child = resp.json()
        assert child["parent_id"] == registered_parent["user_id"]

        resp = await client.get("/api/v1/children/", headers=headers)
        assert [c["name"] for c in resp.json()] == ["Lia"]

    async def test_age_validated(self, client, registered_parent):
        resp = await client.post("/api/v1/children/", headers=registered_parent["headers"], json={
            "name": "Velho", "age": 19,
        })
        assert resp.status_code == 422

    async def test_update_and_delete(self, client, registered_parent):
        headers = registered_parent["headers"]
        child_id = (await client.post("/api/v1/children/", headers=headers, json={
            "name": "Theo", "age": 3,
        })).json()["id"]

        resp = await client.put(f"/api/v1/children/{child_id}", headers=headers, json={"age": 4})
        assert resp.status_code == 200
        assert resp.json()["age"] == 4
        assert resp.json()["name"] == "Theo"

        resp = await client.delete(f"/api/v1/children/{child_id}", headers=headers)
        assert resp.status_code == 204
        resp = await client.get(f"/api/v1/children/{child_id}", headers=headers)
        assert resp.status_code == 404

    async def test_null_required_fields_are_ignored(self, client, registered_parent):
        headers = registered_parent["headers"]
        child_id = (await client.post("/api/v1/children/", headers=headers, json={
            "name": "Theo", "age": 3, "special_needs": "Asma",
        })).json()["id"]

        resp = await client.put(f"/api/v1/children/{child_id}", headers=headers, json={
            "name": None, "age": None, "special_needs": None,
        })
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert (data["name"], data["age"]) == ("Theo", 3)
        assert data["special_needs"] is None

    async def test_other_parents_child_is_hidden(self, client, registered_parent, register):
        other = await register("parent", "Carla")
        child_id = (await client.post("/api/v1/children/", headers=other["headers"], json={
            "name": "Nina", "age": 5,
        })).json()["id"]

        resp = await client.get(
            f"/api/v1/children/{child_id}", headers=registered_parent["headers"]
        )
        assert resp.status_code == 404
        assert resp.json()["kind"] == "not_found"

    async def test_only_parents(self, client, registered_cuidador):
        resp = await client.get("/api/v1/children/", headers=registered_cuidador["headers"])
        assert resp.status_code == 403
        assert resp.json()["kind"] == "forbidden"
