"""
Attachment endpoint tests.
Covers: multipart upload, listing with links, reorder, removals, per-file
failures, single delete.
"""
from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient

from conftest import FakeStorage
from recordfiles.attachments import S3FilesField

pytestmark = pytest.mark.asyncio


async def _create_record(client: AsyncClient) -> str:
    response = await client.post("/api/v1/records/", json={"title": "With files"})
    assert response.status_code == 201, response.text
    return response.json()["id"]


async def _upload(client: AsyncClient, record_id: str, *names: str, **data: str) -> dict:
    response = await client.patch(
        f"/api/v1/records/{record_id}/attachments",
        data=data,
        files=[("upload_files", (name, f"content of {name}".encode(), "text/plain")) for name in names],
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestUpload:
    async def test_upload_files(self, client: AsyncClient, storage: FakeStorage) -> None:
        record_id = await _create_record(client)
        data = await _upload(client, record_id, "a.txt", "b.txt")

        assert data["succeeded"] == 2
        assert data["failed"] == 0
        assert [u["filename"] for u in data["uploads"]] == ["a.txt", "b.txt"]
        attachments = data["record"]["attachments"]
        assert sorted(a["filename"] for a in attachments) == ["a.txt", "b.txt"]
        assert all(a["path"] == "records/" for a in attachments)
        assert all(a["href"] == a["url"] for a in attachments)
        assert storage.objects["records/a.txt"] == b"content of a.txt"

    async def test_upload_appends_to_existing(self, client: AsyncClient) -> None:
        record_id = await _create_record(client)
        await _upload(client, record_id, "a.txt")
        data = await _upload(client, record_id, "b.txt")

        assert [a["filename"] for a in data["record"]["attachments"]] == ["a.txt", "b.txt"]

    async def test_list_attachments(self, client: AsyncClient) -> None:
        record_id = await _create_record(client)
        await _upload(client, record_id, "a.txt")

        response = await client.get(f"/api/v1/records/{record_id}/attachments")
        assert response.status_code == 200
        items = response.json()
        assert len(items) == 1
        assert items[0]["href"] == "https://test-bucket.s3.amazonaws.com/records/a.txt"

    async def test_unknown_record(self, client: AsyncClient) -> None:
        response = await client.patch(
            f"/api/v1/records/{uuid.uuid4()}/attachments",
            files=[("upload_files", ("a.txt", b"x", "text/plain"))],
        )
        assert response.status_code == 404


class TestPerFileFailures:
    @pytest.fixture
    def field(self, make_field) -> S3FilesField:
        return make_field(allowed_types=["text/plain"])

    async def test_disallowed_type_is_reported(self, client: AsyncClient) -> None:
        record_id = await _create_record(client)
        response = await client.patch(
            f"/api/v1/records/{record_id}/attachments",
            files=[
                ("upload_files", ("a.txt", b"a", "text/plain")),
                ("upload_files", ("b.exe", b"b", "application/x-msdownload")),
                ("upload_files", ("c.txt", b"c", "text/plain")),
            ],
        )
        assert response.status_code == 200, response.text
        data = response.json()

        assert data["succeeded"] == 2
        assert data["failed"] == 1
        assert data["uploads"][1]["error"] == "Unsupported File Type: application/x-msdownload"
        assert data["uploads"][1]["attachment"] is None
        assert sorted(a["filename"] for a in data["record"]["attachments"]) == ["a.txt", "c.txt"]

    async def test_storage_rejection_is_reported(
        self, client: AsyncClient, storage: FakeStorage
    ) -> None:
        storage.statuses["b.txt"] = 403
        record_id = await _create_record(client)
        data = await _upload(client, record_id, "a.txt", "b.txt")

        assert data["failed"] == 1
        assert "403" in data["uploads"][1]["error"]
        assert [a["filename"] for a in data["record"]["attachments"]] == ["a.txt"]


class TestReorderAndRemove:
    async def test_reorder(self, client: AsyncClient) -> None:
        record_id = await _create_record(client)
        await _upload(client, record_id, "a.txt")
        await _upload(client, record_id, "b.txt")
        data = await _upload(client, record_id, "c.txt")
        ids = {a["filename"]: a["id"] for a in data["record"]["attachments"]}

        order = ",".join([ids["c.txt"], ids["a.txt"], ids["b.txt"]])
        result = await _upload(client, record_id, order=order)

        assert [a["filename"] for a in result["record"]["attachments"]] == ["c.txt", "a.txt", "b.txt"]
        assert result["uploads"] == []

    async def test_delete_and_reset_actions(
        self, client: AsyncClient, field: S3FilesField, storage: FakeStorage
    ) -> None:
        record_id = await _create_record(client)
        await _upload(client, record_id, "a.txt")
        data = await _upload(client, record_id, "b.txt")
        ids = {a["filename"]: a["id"] for a in data["record"]["attachments"]}

        result = await _upload(
            client, record_id, action=f"delete:{ids['a.txt']}|reset:{ids['b.txt']}|bogus:x"
        )
        await field.wait_pending()

        assert result["record"]["attachments"] == []
        assert storage.deletes == ["records/a.txt"]

    async def test_delete_single_attachment(
        self, client: AsyncClient, field: S3FilesField, storage: FakeStorage
    ) -> None:
        record_id = await _create_record(client)
        data = await _upload(client, record_id, "a.txt")
        attachment_id = data["record"]["attachments"][0]["id"]

        response = await client.delete(f"/api/v1/records/{record_id}/attachments/{attachment_id}")
        assert response.status_code == 204
        await field.wait_pending()

        assert storage.deletes == ["records/a.txt"]
        listing = await client.get(f"/api/v1/records/{record_id}/attachments")
        assert listing.json() == []

    async def test_delete_unknown_attachment(self, client: AsyncClient) -> None:
        record_id = await _create_record(client)
        response = await client.delete(f"/api/v1/records/{record_id}/attachments/missing")
        assert response.status_code == 404
