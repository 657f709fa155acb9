from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from adflow.core.deps import get_db
from adflow.main import app


def make_db() -> AsyncMock:
    """AsyncSession stand-in; add/add_all are synchronous like the real session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    return db


@pytest.fixture
def db() -> AsyncMock:
    return make_db()


@pytest.fixture
async def client(db: AsyncMock) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the FastAPI app with a mocked session (no real server)."""

    async def _override_db():
        yield db

    app.dependency_overrides[get_db] = _override_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()
