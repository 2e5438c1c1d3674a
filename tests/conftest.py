"""
Pytest configuration and fixtures.

Every test gets a fresh in-memory SQLite database (aiosqlite, one shared
connection through StaticPool) with the schema created from the models.
HTTP tests talk to the real FastAPI app through httpx's ASGI transport
with `get_db` overridden to use the test database.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_ON_STARTUP", "false")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import get_db
from app.main import app
from app.models import Base
from app.rbac.permission_seed import seed

DEFAULT_PASSWORD = "correct-horse-battery"


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seeded(session_factory):
    """Seed the canonical role catalog."""
    async with session_factory() as session:
        return await seed(session)


@pytest.fixture
async def client(session_factory, seeded):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class Api:
    """Small wrapper around the auth endpoints used by most HTTP tests."""

    def __init__(self, client: AsyncClient):
        self.client = client

    async def register(
        self,
        company: str = "Acme",
        username: str = "alice",
        email: str = "alice@acme.example.com",
        password: str = DEFAULT_PASSWORD,
        name: str = "Alice",
    ) -> dict:
        resp = await self.client.post(
            "/register",
            json={
                "companyName": company,
                "username": username,
                "email": email,
                "password": password,
                "name": name,
            },
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["user"]

    async def login(self, username: str, company_id: str, password: str = DEFAULT_PASSWORD) -> str:
        resp = await self.client.post(
            "/login",
            json={"username": username, "password": password, "companyId": company_id},
        )
        assert resp.status_code == 200, resp.text
        return resp.json()["accessToken"]

    async def create_user(
        self,
        admin_token: str,
        username: str,
        email: str,
        role: str | None = None,
        password: str = DEFAULT_PASSWORD,
    ) -> dict:
        body = {"username": username, "email": email, "password": password, "name": username.title()}
        if role is not None:
            body["role"] = role
        resp = await self.client.post("/admin/register-user", json=body, headers=bearer(admin_token))
        assert resp.status_code == 201, resp.text
        return resp.json()["user"]

    async def role_ids(self, admin_token: str) -> dict[str, str]:
        resp = await self.client.get("/roles", headers=bearer(admin_token))
        assert resp.status_code == 200, resp.text
        return {r["name"]: r["id"] for r in resp.json()}


@pytest.fixture
def api(client):
    return Api(client)
