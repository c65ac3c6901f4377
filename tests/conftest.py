"""Shared fixtures: an app bound to a throwaway SQLite database and blob directory."""
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fileshare.config import Settings
from fileshare.main import create_app


@pytest.fixture
def app_settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'fileshare.db'}",
        FILE_STORAGE_PATH=str(tmp_path / "uploads"),
    )


@pytest.fixture
def upload_dir(app_settings):
    return Path(app_settings.FILE_STORAGE_PATH)


@pytest_asyncio.fixture
async def app(app_settings):
    app = create_app(app_settings)
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def upload(client):
    """Post one file to /upload, with any extra form fields."""
    async def _upload(name="photo.png", data=b"\x89PNG fake image bytes", **fields):
        return await client.post(
            "/upload",
            files={"file": (name, data, "application/octet-stream")},
            data=fields,
        )
    return _upload
