"""Integration tests for the /api/v1/documents, /api/v1/uploads and
/api/v1/admin endpoints."""

import pytest

DOCUMENT = {
    "title": "Regulamento da cuidoteca",
    "file_name": "regulamento.pdf",
    "file_url": "/api/v1/uploads/files/regulamento.pdf",
    "file_size": 2048,
    "file_type": "application/pdf",
}


@pytest.fixture()
def upload_dir(tmp_path, monkeypatch):
    from cuidoteca.config import settings

    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


class TestDocuments:
    async def test_public_and_private(self, client, registered_institution, registered_parent):
        headers = registered_institution["headers"]
        public = await client.post("/api/v1/documents/", headers=headers, json=DOCUMENT)
        assert public.status_code == 201, public.text
        private = await client.post("/api/v1/documents/", headers=headers, json={
            **DOCUMENT, "title": "Lista interna", "is_public": False,
        })
        assert private.status_code == 201

        listed = await client.get("/api/v1/documents/public", headers=registered_parent["headers"])
        (entry,) = listed.json()
        assert entry["institution_name"] == "Universidade Federal"

        inst_url = f"/api/v1/documents/institution/{registered_institution['user_id']}"
        as_parent = await client.get(inst_url, headers=registered_parent["headers"])
        assert len(as_parent.json()) == 1
        as_owner = await client.get(inst_url, headers=headers)
        assert len(as_owner.json()) == 2

    async def test_update_and_delete(self, client, registered_institution, register):
        headers = registered_institution["headers"]
        doc_id = (await client.post("/api/v1/documents/", headers=headers, json=DOCUMENT)).json()["id"]

        resp = await client.put(
            f"/api/v1/documents/{doc_id}", headers=headers, json={"is_public": False}
        )
        assert resp.json()["is_public"] is False

        rival = await register("institution", "Outra")
        resp = await client.delete(f"/api/v1/documents/{doc_id}", headers=rival["headers"])
        assert resp.status_code == 403

        resp = await client.delete(f"/api/v1/documents/{doc_id}", headers=headers)
        assert resp.status_code == 204
        resp = await client.delete(f"/api/v1/documents/{doc_id}", headers=headers)
        assert resp.status_code == 404

    async def test_only_institutions_create(self, client, registered_parent):
        resp = await client.post(
            "/api/v1/documents/", headers=registered_parent["headers"], json=DOCUMENT
        )
        assert resp.status_code == 403


class TestUploads:
    async def test_upload_and_download(self, client, registered_institution, upload_dir):
        headers = registered_institution["headers"]
        resp = await client.post(
            "/api/v1/uploads/documents",
            headers=headers,
            files={"file": ("regulamento.pdf", b"%PDF-1.4 teste", "application/pdf")},
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["file_name"] == "regulamento.pdf"
        assert data["file_size"] == len(b"%PDF-1.4 teste")
        assert data["url"].startswith("/api/v1/uploads/files/")

        download = await client.get(data["url"], headers=headers)
        assert download.status_code == 200
        assert download.content == b"%PDF-1.4 teste"

    async def test_disallowed_type(self, client, registered_institution, upload_dir):
        resp = await client.post(
            "/api/v1/uploads/documents",
            headers=registered_institution["headers"],
            files={"file": ("script.sh", b"echo hi", "text/x-shellscript")},
        )
        assert resp.status_code == 400

    async def test_missing_file(self, client, registered_parent, upload_dir):
        resp = await client.get(
            "/api/v1/uploads/files/nao-existe.pdf", headers=registered_parent["headers"]
        )
        assert resp.status_code == 404


class TestAdmin:
    async def test_stats(self, client, coordinator, registered_parent, registered_institution):
        await client.post(
            "/api/v1/children/", headers=registered_parent["headers"], json={"name": "Lia", "age": 4}
        )
        resp = await client.get("/api/v1/admin/stats", headers=coordinator["headers"])
        assert resp.status_code == 200
        assert resp.json() == {
            "total_parents": 1,
            "total_cuidadores": 0,
            "total_institutions": 1,
            "total_children": 1,
            "confirmed_enrollments": 0,
            "pending_enrollments": 0,
        }

    async def test_stats_coordinator_only(self, client, registered_institution):
        resp = await client.get("/api/v1/admin/stats", headers=registered_institution["headers"])
        assert resp.status_code == 403
