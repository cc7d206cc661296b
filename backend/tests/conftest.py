"""
Pytest Configuration and Test Fixtures for the Tubely Backend

This module provides shared fixtures including:
- Test Settings with an isolated assets directory
- In-memory stand-in for the MongoDB videos collection
- Fake prober and transcoder so ffprobe/ffmpeg are never spawned
- Mocked boto3 S3 client behind a real ObjectAssetStorage
- A fully wired UploadService and a FastAPI TestClient using it
- Bearer tokens for an owner and a stranger
"""

import copy
import shutil

from collections.abc import Generator
from io import BytesIO
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from fastapi.testclient import TestClient
from starlette.datastructures import Headers, UploadFile

from tubely.api.deps import get_upload_service
from tubely.config import Settings, get_settings
from tubely.core.auth import create_access_token
from tubely.core.errors import ProbeError, TranscodeError
from tubely.core.storage import LocalAssetStorage, ObjectAssetStorage
from tubely.main import app
from tubely.models.video import AspectCategory, Video
from tubely.services.thumbnail_store import MemoryThumbnailStore
from tubely.services.upload_service import UploadService


TEST_JWT_SECRET = "test-secret-key-for-jwt-signing-minimum-32-chars"

OWNER_ID = "8d1e5a52-4b1f-4f0c-9a3e-0c4b8e2d7f11"

STRANGER_ID = "2c7f3b90-9e64-4a0d-b5b1-6d9a1f3e8c22"

# Smallest byte sequences that carry the right magic numbers
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"

MP4_BYTES = b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom" + b"\x00" * 64


# ==============================================================================
# Fakes
# ==============================================================================


class FakeCursor:
    """Async cursor over a list of documents supporting sort()."""

    def __init__(self, documents: list[dict[str, Any]]) -> None:
        self._documents = documents

    def sort(self, key: str, direction: int) -> "FakeCursor":
        self._documents = sorted(self._documents, key=lambda d: d[key], reverse=direction < 0)
        return self

    def __aiter__(self):
        self._iter = iter(self._documents)
        return self

    async def __anext__(self) -> dict[str, Any]:
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration from None


class FakeVideosCollection:
    """In-memory stand-in for the Motor videos collection."""

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.replace_calls = 0

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        document = self.documents.get(query["_id"])
        return copy.deepcopy(document) if document is not None else None

    async def insert_one(self, document: dict[str, Any]) -> MagicMock:
        self.documents[document["_id"]] = copy.deepcopy(document)
        return MagicMock(inserted_id=document["_id"])

    async def replace_one(self, query: dict[str, Any], document: dict[str, Any]) -> MagicMock:
        self.replace_calls += 1
        matched = query["_id"] in self.documents
        if matched:
            self.documents[query["_id"]] = copy.deepcopy(document)
        return MagicMock(matched_count=int(matched))

    def find(self, query: dict[str, Any]) -> FakeCursor:
        matches = [
            copy.deepcopy(d)
            for d in self.documents.values()
            if all(d.get(k) == v for k, v in query.items())
        ]
        return FakeCursor(matches)

    async def create_index(self, *args: Any, **kwargs: Any) -> str:
        return kwargs.get("name", "index")


class FakeDatabaseClient:
    """Exposes the same collection accessor as DatabaseClient."""

    def __init__(self) -> None:
        self.videos = FakeVideosCollection()

    def get_videos_collection(self) -> FakeVideosCollection:
        return self.videos

    async def ping(self) -> bool:
        return True


class FakeProber:
    """Prober returning a fixed category, or raising ProbeError when told to."""

    def __init__(self, category: AspectCategory = AspectCategory.LANDSCAPE) -> None:
        self.category = category
        self.fail = False
        self.calls: list[Path] = []

    async def probe_aspect_ratio(self, path: Path) -> AspectCategory:
        self.calls.append(Path(path))
        if self.fail:
            raise ProbeError("Could not probe video", detail="moov atom not found")
        return self.category


class FakeTranscoder:
    """Copies the input to ``<path>.processed`` like the ffmpeg transcoder."""

    def __init__(self) -> None:
        self.fail = False
        self.calls: list[Path] = []
        self.outputs: list[Path] = []

    async def optimize_for_fast_start(self, path: Path) -> Path:
        path = Path(path)
        self.calls.append(path)
        if self.fail:
            raise TranscodeError("Could not process video", detail="Invalid data found")
        output = path.with_name(path.name + ".processed")
        shutil.copyfile(path, output)
        self.outputs.append(output)
        return output


# ==============================================================================
# Settings and Collaborators
# ==============================================================================


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment, with assets under tmp_path."""
    return Settings(
        _env_file=None,
        app_env="testing",
        json_logs=False,
        port=8091,
        jwt_secret=TEST_JWT_SECRET,
        assets_root=str(tmp_path / "assets"),
        s3_bucket_name="test-bucket",
        s3_cf_distribution="https://cdn.example.test",
        thumbnail_store_backend="memory",
    )


@pytest.fixture
def fake_db() -> FakeDatabaseClient:
    return FakeDatabaseClient()


@pytest.fixture
def fake_prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def fake_transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture
def mock_s3_client() -> MagicMock:
    """boto3 S3 client mock; upload_file succeeds by default."""
    client = MagicMock()
    client.upload_file = MagicMock(return_value=None)
    return client


@pytest.fixture
def thumbnail_store() -> MemoryThumbnailStore:
    return MemoryThumbnailStore()


@pytest.fixture
def temp_root(tmp_path: Path) -> Path:
    """Parent directory for per-upload temp directories."""
    root = tmp_path / "work"
    root.mkdir()
    return root


@pytest.fixture
def upload_service(
    test_settings: Settings,
    fake_db: FakeDatabaseClient,
    mock_s3_client: MagicMock,
    thumbnail_store: MemoryThumbnailStore,
    fake_prober: FakeProber,
    fake_transcoder: FakeTranscoder,
    temp_root: Path,
) -> UploadService:
    return UploadService(
        db=fake_db,
        local_storage=LocalAssetStorage.from_settings(test_settings),
        object_storage=ObjectAssetStorage(
            mock_s3_client, test_settings.s3_bucket_name, test_settings.s3_cf_distribution
        ),
        thumbnail_store=thumbnail_store,
        prober=fake_prober,
        transcoder=fake_transcoder,
        temp_root=temp_root,
    )


# ==============================================================================
# Records and Credentials
# ==============================================================================


@pytest.fixture
def owned_video(fake_db: FakeDatabaseClient) -> Video:
    """A video owned by OWNER_ID, already present in the fake collection."""
    video = Video(user_id=OWNER_ID, title="Boots on the ground", description="Field test")
    fake_db.videos.documents[video.id] = video.to_document()
    return video


@pytest.fixture
def owner_token(test_settings: Settings) -> str:
    return create_access_token(OWNER_ID, test_settings)


@pytest.fixture
def stranger_token(test_settings: Settings) -> str:
    return create_access_token(STRANGER_ID, test_settings)


@pytest.fixture
def owner_headers(owner_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {owner_token}"}


@pytest.fixture
def stranger_headers(stranger_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {stranger_token}"}


def make_upload(
    data: bytes,
    content_type: str,
    filename: str = "upload.bin",
    size: int | None = None,
) -> UploadFile:
    """Build an UploadFile the way the multipart parser does."""
    return UploadFile(
        file=BytesIO(data),
        size=len(data) if size is None else size,
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


# ==============================================================================
# FastAPI Client
# ==============================================================================


@pytest.fixture
def client(test_settings: Settings, upload_service: UploadService) -> Generator[TestClient, None, None]:
    """
    TestClient wired to the fake-backed UploadService.

    The application lifespan is not entered, so no MongoDB or Redis is needed.
    """
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_upload_service] = lambda: upload_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
