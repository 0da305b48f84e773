"""
Attachment store tests.
Covers: exists, reset, delete with fire-and-forget remote removal.
"""
from __future__ import annotations

import logging

import pytest

from conftest import FakeEntity, FakeStorage, stored
from recordfiles.attachments import Attachment, AttachmentStore, S3FilesField


@pytest.fixture
def store(storage: FakeStorage) -> AttachmentStore:
    return AttachmentStore("attachments", storage)


class TestExists:
    def test_empty_list(self, store: AttachmentStore) -> None:
        assert store.exists(FakeEntity(attachments=[])) is False

    def test_any_item_without_id(self, store: AttachmentStore) -> None:
        assert store.exists(FakeEntity(attachments=[stored("a")])) is True

    def test_missing_filename(self, store: AttachmentStore) -> None:
        entity = FakeEntity(attachments=[Attachment(id="a", path="records/")])
        assert store.exists(entity, "a") is False

    def test_missing_path(self, store: AttachmentStore) -> None:
        entity = FakeEntity(attachments=[stored("a", path=None)])
        assert store.exists(entity, "a") is False

    def test_fully_populated(self, store: AttachmentStore) -> None:
        assert store.exists(FakeEntity(attachments=[stored("a")]), "a") is True

    def test_root_path_counts_as_populated(self, store: AttachmentStore) -> None:
        assert store.exists(FakeEntity(attachments=[stored("a", path="")]), "a") is True

    def test_unknown_id(self, store: AttachmentStore) -> None:
        assert store.exists(FakeEntity(attachments=[stored("a")]), "zzz") is False


class TestReset:
    def test_reset_all(self, store: AttachmentStore) -> None:
        entity = FakeEntity(attachments=[stored("a"), stored("b")])
        store.reset(entity)
        assert entity.get("attachments") == []

    def test_reset_one(self, store: AttachmentStore) -> None:
        entity = FakeEntity(attachments=[stored("a"), stored("b"), stored("c")])
        store.reset(entity, "b")
        assert entity.ids() == ["a", "c"]

    def test_reset_unknown_is_noop(self, store: AttachmentStore) -> None:
        entity = FakeEntity(attachments=[stored("a")])
        store.reset(entity, "zzz")
        assert entity.ids() == ["a"]
        assert entity.is_modified("attachments") is False


class TestDelete:
    async def test_delete_schedules_remote_removal(
        self, store: AttachmentStore, storage: FakeStorage
    ) -> None:
        entity = FakeEntity(attachments=[stored("a"), stored("b")])
        store.delete(entity, "a")

        assert entity.ids() == ["b"]
        await store.wait_pending()
        assert storage.deletes == ["records/a.txt"]

    async def test_delete_survives_remote_failure(
        self,
        store: AttachmentStore,
        storage: FakeStorage,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        storage.fail_deletes = True
        entity = FakeEntity(attachments=[stored("a")])

        with caplog.at_level(logging.ERROR, logger="recordfiles.attachments.store"):
            store.delete(entity, "a")
            await store.wait_pending()

        assert entity.get("attachments") == []
        assert storage.deletes == ["records/a.txt"]
        assert "orphaned" in caplog.text

    async def test_delete_unstored_item_skips_remote(
        self, store: AttachmentStore, storage: FakeStorage
    ) -> None:
        entity = FakeEntity(attachments=[Attachment(id="a", path="records/")])
        store.delete(entity, "a")
        await store.wait_pending()

        assert entity.get("attachments") == []
        assert storage.deletes == []

    async def test_delete_unknown_id(self, store: AttachmentStore, storage: FakeStorage) -> None:
        entity = FakeEntity(attachments=[stored("a")])
        store.delete(entity, "zzz")
        await store.wait_pending()

        assert entity.ids() == ["a"]
        assert storage.deletes == []


class TestDeleteWithoutEventLoop:
    def test_local_removal_still_happens(
        self,
        store: AttachmentStore,
        storage: FakeStorage,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        entity = FakeEntity(attachments=[stored("a"), stored("b")])

        with caplog.at_level(logging.ERROR, logger="recordfiles.attachments.store"):
            store.delete(entity, "a")

        assert entity.ids() == ["b"]
        assert storage.deletes == []
        assert "orphaned" in caplog.text
        assert "records/a.txt" in caplog.text

    def test_field_delete_from_sync_code(self, field: S3FilesField) -> None:
        entity = FakeEntity(attachments=[stored("a")])
        field.delete(entity, "a")
        assert entity.ids() == []
