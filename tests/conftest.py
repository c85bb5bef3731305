"""Shared pytest fixtures for the video service tests."""

import copy
import os
from datetime import timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from main import app
from src.api.dependencies import get_object_store, get_thumbnail_store, get_video_store
from src.core.config import settings
from src.core.errors import UploadError
from src.core.security import make_jwt
from src.core.storage import ObjectStore
from src.core.thumbnail_store import MemoryThumbnailStore
from src.database.schemas.video import Video
from src.database.videos import VideoStore

JWT_SECRET = "test-secret"
OWNER_ID = "usr_owner"
OTHER_USER_ID = "usr_other"


def _matches(doc, query):
    return all(doc.get(field) == value for field, value in query.items())


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs

    def sort(self, field, direction):
        self.docs.sort(key=lambda d: d[field], reverse=direction == DESCENDING)
        return self

    async def to_list(self, length=None):
        return self.docs if length is None else self.docs[:length]


class FakeCollection:
    """Just enough of a motor collection for the stores under test."""

    def __init__(self):
        self.docs = {}
        self.calls = []

    async def find_one(self, query):
        self.calls.append(("find_one", query))
        for doc in self.docs.values():
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query):
        self.calls.append(("find", query))
        return FakeCursor([copy.deepcopy(d) for d in self.docs.values() if _matches(d, query)])

    async def insert_one(self, doc):
        self.calls.append(("insert_one", doc["_id"]))
        if doc["_id"] in self.docs:
            raise DuplicateKeyError("duplicate _id")
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def update_one(self, query, update):
        self.calls.append(("update_one", query))
        matched = 0
        for doc in self.docs.values():
            if _matches(doc, query):
                doc.update(copy.deepcopy(update["$set"]))
                matched += 1
                break
        return SimpleNamespace(matched_count=matched)

    async def delete_one(self, query):
        self.calls.append(("delete_one", query))
        for key, doc in list(self.docs.items()):
            if _matches(doc, query):
                del self.docs[key]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class RecordingObjectStore(ObjectStore):
    """Object store double that keeps uploaded bytes in memory."""

    def __init__(self):
        super().__init__(bucket="test-bucket", region="us-east-1", client=object())
        self.uploads = []
        self.deleted = []
        self.fail_uploads = False

    async def upload_file(self, local_path, key, content_type):
        if self.fail_uploads:
            raise UploadError(f"Failed to upload {key}: simulated outage")
        with open(local_path, "rb") as f:
            data = f.read()
        self.uploads.append(SimpleNamespace(path=local_path, key=key, content_type=content_type, data=data))

    async def delete_object(self, key):
        self.deleted.append(key)

    def generate_presigned_url(self, key, expires_in):
        return f"https://test-bucket.s3.amazonaws.com/{key}?X-Amz-Expires={expires_in}&X-Amz-Signature=fake"


@pytest.fixture(autouse=True)
def test_settings(tmp_path, monkeypatch):
    temp_dir = tmp_path / "staging"
    temp_dir.mkdir()
    monkeypatch.setattr(settings, "JWT_SECRET", JWT_SECRET)
    monkeypatch.setattr(settings, "TEMP_DIR", str(temp_dir))
    monkeypatch.setattr(settings, "ASSETS_ROOT", str(tmp_path / "assets"))
    monkeypatch.setattr(settings, "PUBLIC_BASE_URL", "http://localhost:8091")
    monkeypatch.setattr(settings, "VIDEO_DELIVERY", "direct")
    monkeypatch.setattr(settings, "CDN_HOST", "")
    return settings


@pytest.fixture
def staging_files(test_settings):
    """Return a callable listing whatever is left in the staging directory."""
    return lambda: sorted(os.listdir(test_settings.TEMP_DIR))


@pytest.fixture
def videos_collection():
    return FakeCollection()


@pytest.fixture
def video_store(videos_collection):
    return VideoStore(videos_collection)


@pytest.fixture
def object_store():
    return RecordingObjectStore()


@pytest.fixture
def thumbnail_store():
    return MemoryThumbnailStore()


@pytest.fixture
def client(video_store, object_store, thumbnail_store):
    app.dependency_overrides[get_video_store] = lambda: video_store
    app.dependency_overrides[get_object_store] = lambda: object_store
    app.dependency_overrides[get_thumbnail_store] = lambda: thumbnail_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user_id=OWNER_ID, secret=JWT_SECRET):
    token = make_jwt(user_id, secret, timedelta(hours=1))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_headers():
    return auth_headers(OWNER_ID)


@pytest.fixture
def other_headers():
    return auth_headers(OTHER_USER_ID)


@pytest.fixture
def seeded_video(videos_collection):
    video = Video(
        id="vid_seeded",
        user_id=OWNER_ID,
        title="Boot demo",
        description="A clip",
    )
    videos_collection.docs[video.id] = video.to_document()
    videos_collection.calls.clear()
    return video


@pytest.fixture
def users_collection(monkeypatch):
    import src.api.routes_auth as routes_auth

    collection = FakeCollection()
    monkeypatch.setattr(routes_auth, "get_users_collection", lambda: collection)
    return collection
