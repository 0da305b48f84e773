"""
Test configuration and shared fixtures.
Uses an in-memory SQLite database and an in-memory object store so tests
never touch PostgreSQL or S3.
"""
from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Callable, Mapping
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from recordfiles.attachments import Attachment, FieldConfig, S3FilesField, UploadRequest
from recordfiles.core.dependencies import get_attachment_field
from recordfiles.core.limiter import limiter
from recordfiles.db.base import Base
from recordfiles.db.session import get_db
from recordfiles.main import app
from recordfiles.storage import PutResult, StorageSettings, StorageTransferError

# ── Test database ─────────────────────────────────────────────────────────────
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_STORAGE = StorageSettings(
    bucket="test-bucket",
    region="us-east-1",
    protocol="https",
)


# ── Fakes ─────────────────────────────────────────────────────────────────────

class FakeStorage:
    """
    In-memory storage capability. Behaviour is keyed on the last component
    of the object key, so tests can target one file of a batch.
    """

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.puts: list[tuple[str, dict[str, str]]] = []
        self.deletes: list[str] = []
        self.settled: list[str] = []
        self.statuses: dict[str, int] = {}
        self.delays: dict[str, float] = {}
        self.put_errors: dict[str, Exception] = {}
        self.fail_deletes = False

    async def put_object(
        self, source_path: str, key: str, headers: Mapping[str, str]
    ) -> PutResult:
        name = key.rsplit("/", 1)[-1]
        await asyncio.sleep(self.delays.get(name, 0))
        self.puts.append((key, dict(headers)))
        self.settled.append(name)
        if name in self.put_errors:
            raise self.put_errors[name]
        status = self.statuses.get(name, 200)
        if status == 200:
            self.objects[key] = Path(source_path).read_bytes()
        return PutResult(
            status_code=status,
            url=f"https://{TEST_STORAGE.bucket}.s3.amazonaws.com/{key}",
        )

    async def delete_object(self, key: str) -> dict[str, Any]:
        self.deletes.append(key)
        if self.fail_deletes:
            raise StorageTransferError("Access Denied", status_code=403)
        self.objects.pop(key, None)
        return {"ResponseMetadata": {"HTTPStatusCode": 204}}


class FakeEntity:
    """Entity accessor over plain in-memory lists."""

    def __init__(self, **lists: list[Attachment]) -> None:
        self.fields: dict[str, list[Attachment]] = {k: list(v) for k, v in lists.items()}
        self._snapshots = {k: list(v) for k, v in lists.items()}

    def get(self, path: str) -> list[Attachment]:
        return self.fields.setdefault(path, [])

    def set(self, path: str, value: list[Attachment]) -> None:
        self.fields[path] = list(value)

    def is_modified(self, path: str) -> bool:
        return self.fields.get(path, []) != self._snapshots.get(path, [])

    def ids(self, path: str = "attachments") -> list[str]:
        return [item.id for item in self.get(path)]


def stored(attachment_id: str, filename: str | None = None, path: str | None = "records/") -> Attachment:
    """A fully-populated attachment record."""
    filename = f"{attachment_id}.txt" if filename is None else filename
    return Attachment(
        id=attachment_id,
        filename=filename,
        path=path,
        size=5,
        filetype="text/plain",
        url=f"https://test-bucket.s3.amazonaws.com/{path or ''}{filename}",
    )


# ── Attachment field fixtures ─────────────────────────────────────────────────

@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def make_field(storage: FakeStorage) -> Callable[..., S3FilesField]:
    """Build an S3FilesField over the fake storage with the given options."""

    def _make(**options: Any) -> S3FilesField:
        options.setdefault("s3_path", "records")
        config = FieldConfig.resolve("attachments", defaults=TEST_STORAGE, **options)
        return S3FilesField(config, storage=storage)

    return _make


@pytest.fixture
def field(make_field: Callable[..., S3FilesField]) -> S3FilesField:
    return make_field()


@pytest.fixture
def make_upload(tmp_path: Path) -> Callable[..., UploadRequest]:
    """Write a local file and describe it as an incoming upload."""

    def _make(name: str, mime_type: str | None = "text/plain", content: bytes = b"hello") -> UploadRequest:
        source = tmp_path / f"src-{len(list(tmp_path.iterdir()))}-{name or 'unnamed'}"
        source.write_bytes(content)
        return UploadRequest(
            source_path=str(source),
            original_name=name,
            mime_type=mime_type,
            size=len(content),
        )

    return _make


# ── Database and HTTP client ──────────────────────────────────────────────────

@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """Provide a session over a fresh in-memory database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db: AsyncSession, field: S3FilesField) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP test client with the test DB and fake storage injected."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_attachment_field] = lambda: field
    limiter.enabled = False

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    await field.wait_pending()
    limiter.enabled = True
    app.dependency_overrides.clear()
