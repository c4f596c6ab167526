"""Tests for /api/documents/* and /api/share/* endpoints."""

import asyncio
import uuid

from models.document import DocumentFormat, DocumentType
from storage.supabase_storage import object_key

USER = "firebase-user-1"


async def _completed(repository, storage, title="The history of tea"):
    doc = await repository.create(USER, title, DocumentType.BOOK_SMALL, DocumentFormat.PDF)
    url = await storage.upload(object_key(USER, doc.id, "pdf"), b"%PDF-1.4", "application/pdf")
    await repository.mark_processing(doc.id)
    await repository.mark_completed(doc.id, url, 8)
    return doc


class TestListDocuments:
    async def test_lists_own_documents(self, test_client, auth_headers, repository, storage):
        doc = await _completed(repository, storage)
        resp = await test_client.get(f"/api/documents/{USER}", headers=auth_headers)
        assert resp.status_code == 200
        docs = resp.json()["documents"]
        assert len(docs) == 1
        assert docs[0]["id"] == str(doc.id)
        assert docs[0]["generation_status"] == "completed"
        assert docs[0]["file_size"] == 8

    async def test_other_users_list_returns_403(self, test_client, other_auth_headers):
        resp = await test_client.get(f"/api/documents/{USER}", headers=other_auth_headers)
        assert resp.status_code == 403

    async def test_empty_list(self, test_client, auth_headers):
        resp = await test_client.get(f"/api/documents/{USER}", headers=auth_headers)
        assert resp.json() == {"documents": []}


class TestDocumentStatus:
    async def test_status_with_progress(self, test_client, auth_headers, orchestrator):
        resp = await test_client.post(
            "/api/generateBookSmall", json={"prompt": "Tea", "userId": USER}, headers=auth_headers
        )
        doc_id = resp.json()["document_id"]
        await orchestrator.wait(uuid.UUID(doc_id))

        resp = await test_client.get(f"/api/documents/{doc_id}/status", headers=auth_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["generation_status"] == "completed"
        assert data["progress"]["stage"] == "done"
        assert data["progress"]["completed_units"] == data["progress"]["total_units"] == 7

    async def test_status_without_job(self, test_client, auth_headers, repository):
        doc = await repository.create(USER, "Tea", DocumentType.BOOK_SMALL, DocumentFormat.PDF)
        resp = await test_client.get(f"/api/documents/{doc.id}/status", headers=auth_headers)
        assert resp.json()["generation_status"] == "pending"
        assert resp.json()["progress"] is None


class TestDeleteDocument:
    async def test_deletes_row_and_file(self, test_client, auth_headers, repository, storage):
        doc = await _completed(repository, storage)
        resp = await test_client.delete(f"/api/documents/{doc.id}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert await repository.get(doc.id) is None
        assert storage.objects == {}

    async def test_other_users_document_returns_403(self, test_client, other_auth_headers, repository, storage):
        doc = await _completed(repository, storage)
        resp = await test_client.delete(f"/api/documents/{doc.id}", headers=other_auth_headers)
        assert resp.status_code == 403
        assert await repository.get(doc.id) is not None

    async def test_unknown_document_returns_404(self, test_client, auth_headers):
        resp = await test_client.delete(f"/api/documents/{uuid.uuid4()}", headers=auth_headers)
        assert resp.status_code == 404

    async def test_storage_failure_returns_502_and_keeps_row(self, test_client, auth_headers, repository, storage):
        doc = await _completed(repository, storage)
        storage.fail_deletes = True
        resp = await test_client.delete(f"/api/documents/{doc.id}", headers=auth_headers)
        assert resp.status_code == 502
        assert await repository.get(doc.id) is not None

    async def test_delete_while_writing_chapters(self, test_client, auth_headers, repository, storage, llm, orchestrator):
        started, release = asyncio.Event(), asyncio.Event()

        async def _block(count):
            if count == 2:
                started.set()
                await release.wait()

        llm.on_call = _block
        resp = await test_client.post(
            "/api/generateBookSmall", json={"prompt": "Tea", "userId": USER}, headers=auth_headers
        )
        doc_id = uuid.UUID(resp.json()["document_id"])
        await started.wait()

        resp = await test_client.delete(f"/api/documents/{doc_id}", headers=auth_headers)
        assert resp.status_code == 200
        release.set()
        await orchestrator.wait(doc_id)

        assert await repository.get(doc_id) is None
        assert storage.objects == {}
        assert len(llm.calls) == 2

    async def test_delete_while_uploading(self, test_client, auth_headers, repository, storage, orchestrator, monkeypatch):
        uploaded, release = asyncio.Event(), asyncio.Event()
        original = storage.upload

        async def _slow_upload(key, data, content_type):
            url = await original(key, data, content_type)
            uploaded.set()
            await release.wait()
            return url

        monkeypatch.setattr(storage, "upload", _slow_upload)
        resp = await test_client.post(
            "/api/generateBookSmall", json={"prompt": "Tea", "userId": USER}, headers=auth_headers
        )
        doc_id = uuid.UUID(resp.json()["document_id"])
        await uploaded.wait()
        assert len(storage.objects) == 1

        resp = await test_client.delete(f"/api/documents/{doc_id}", headers=auth_headers)
        assert resp.status_code == 200
        release.set()
        await orchestrator.wait(doc_id)

        assert await repository.get(doc_id) is None
        assert storage.objects == {}

    async def test_invalid_id_returns_422(self, test_client, auth_headers):
        resp = await test_client.delete("/api/documents/not-a-uuid", headers=auth_headers)
        assert resp.status_code == 422


class TestSharing:
    async def test_share_then_fetch_publicly(self, test_client, auth_headers, repository, storage):
        doc = await _completed(repository, storage)
        resp = await test_client.post(f"/api/documents/{doc.id}/share", headers=auth_headers)
        assert resp.status_code == 200
        token = resp.json()["share_token"]
        assert resp.json()["share_url"] == f"https://bookgen.test/share/{token}"

        resp = await test_client.get(f"/api/share/{token}")
        assert resp.status_code == 200
        shared = resp.json()["document"]
        assert shared["id"] == str(doc.id)
        assert shared["file_url"].endswith(f"{doc.id}.pdf")
        assert "user_id" not in shared
        assert "share_token" not in shared

    async def test_share_pending_returns_409(self, test_client, auth_headers, repository):
        doc = await repository.create(USER, "Tea", DocumentType.BOOK_SMALL, DocumentFormat.PDF)
        resp = await test_client.post(f"/api/documents/{doc.id}/share", headers=auth_headers)
        assert resp.status_code == 409

    async def test_unshare(self, test_client, auth_headers, repository, storage):
        doc = await _completed(repository, storage)
        token = (await test_client.post(f"/api/documents/{doc.id}/share", headers=auth_headers)).json()["share_token"]

        resp = await test_client.delete(f"/api/documents/{doc.id}/share", headers=auth_headers)
        assert resp.status_code == 200
        assert (await test_client.get(f"/api/share/{token}")).status_code == 404

    async def test_deleted_document_link_stops_working(self, test_client, auth_headers, repository, storage):
        doc = await _completed(repository, storage)
        token = (await test_client.post(f"/api/documents/{doc.id}/share", headers=auth_headers)).json()["share_token"]

        await test_client.delete(f"/api/documents/{doc.id}", headers=auth_headers)
        assert (await test_client.get(f"/api/share/{token}")).status_code == 404

    async def test_unknown_token_returns_404(self, test_client):
        resp = await test_client.get("/api/share/does-not-exist")
        assert resp.status_code == 404


class TestHealth:
    async def test_health(self, test_client):
        resp = await test_client.get("/api/health")
        assert resp.json() == {"status": "ok"}
