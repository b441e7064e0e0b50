import os

os.environ.setdefault("APP_ENV", "test")

import pytest
from httpx import ASGITransport, AsyncClient

from app.core import config
from app.db.bootstrap import bootstrap
from app.db.session import Database, get_db
from app.main import app


@pytest.fixture(autouse=True)
def trusted_callers(monkeypatch):
    """Tests run without identity tokens unless they opt in."""
    monkeypatch.setattr(config, "AUTH_JWT_SECRET", None)


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'pinboard.db'}")
    await bootstrap(db.engine)
    try:
        yield db
    finally:
        await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
async def client(database):
    async def override_get_db():
        async with database.session() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def create_pin(client):
    async def _create_pin(
        username="alice",
        title="Sunset",
        images=("https://img.example/1.jpg",),
        description="Evening sky",
        **extra,
    ):
        payload = {
            "title": title,
            "description": description,
            "images": list(images),
            "username": username,
            **extra,
        }
        response = await client.post("/api/pins", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _create_pin


@pytest.fixture
def create_board(client):
    async def _create_board(username="alice", title="Inspiration", **extra):
        response = await client.post(
            "/api/boards", json={"username": username, "title": title, **extra}
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create_board
