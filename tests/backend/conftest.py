import os
import uuid
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from app.core import db as db_module
from app.main import app
from app.models.subscription import Subscription
from app.models.user import User
from app.models.video import Video
from app.services.media_base import MediaAsset, MediaStore, discard_local_file
from app.services.media_factory import get_media_store


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL

MEDIA_BASE_URL = "http://media.test/demo/image/upload/v1"


class FakeMediaStore(MediaStore):
    """
    In-memory media host. Records every upload/delete and removes the
    local file after each upload attempt, like the real adapter.
    """
    name = "Fake media host"

    def __init__(self):
        self.uploaded: list[str] = []
        self.deleted: list[str] = []
        self.fail_uploads = False
        self.fail_deletes = False
        self._counter = 0

    def is_available(self) -> bool:
        return True

    async def upload(self, local_path):
        if not local_path:
            return None
        try:
            self.uploaded.append(local_path)
            if self.fail_uploads:
                return None
            self._counter += 1
            public_id = f"asset{self._counter}"
            return MediaAsset(url=f"{MEDIA_BASE_URL}/{public_id}{Path(local_path).suffix}", public_id=public_id)
        finally:
            discard_local_file(local_path)

    async def delete(self, public_id):
        self.deleted.append(public_id)
        return None if self.fail_deletes else {"result": "ok"}


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def db():
    """Fresh database without an HTTP client (service-level tests)."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def media_store():
    """
    Fake media host installed in place of Cloudinary for the duration of a test.
    """
    store = FakeMediaStore()
    app.dependency_overrides[get_media_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_media_store, None)


@pytest_asyncio.fixture
async def client(db, media_store):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    """
    # Use ASGITransport without lifespan parameter (not supported in all httpx versions)
    try:
        transport = ASGITransport(app=app, lifespan="off")
    except TypeError:
        # Fallback for httpx versions that don't support lifespan parameter
        transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest_asyncio.fixture
async def create_user(db):
    """
    Factory fixture to create users directly via ORM.
    """

    async def _create_user(
        username: str | None = None,
        password: str = "UserPass!23",
        avatar: str = f"{MEDIA_BASE_URL}/oldavatar.png",
        cover_image: str = "",
        full_name: str = "Test User",
    ) -> tuple[User, str]:
        username = (username or f"user_{uuid.uuid4().hex[:6]}").lower()
        user = User(
            username=username,
            email=f"{username}@example.com",
            full_name=full_name,
            avatar=avatar,
            cover_image=cover_image,
        )
        user.set_password(password)
        await user.save()
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def subscribe(db):
    async def _subscribe(subscriber: User, channel: User) -> Subscription:
        return await Subscription.create(subscriber=subscriber, channel=channel)

    return _subscribe


@pytest_asyncio.fixture
async def create_video(db):
    async def _create_video(owner: User, title: str = "A video") -> Video:
        return await Video.create(
            owner=owner,
            title=title,
            description=f"{title} description",
            video_file=f"{MEDIA_BASE_URL}/{uuid.uuid4().hex[:8]}.mp4",
            thumbnail=f"{MEDIA_BASE_URL}/{uuid.uuid4().hex[:8]}.jpg",
            duration=42.5,
        )

    return _create_video


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(username: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/users/login",
            json={"userName": username, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["data"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
