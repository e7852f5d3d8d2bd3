"""
Shared fixtures: an in-memory SQLite database per test, the FastAPI app with
its database, image host and notifier dependencies overridden, and helpers
for signing in as the seeded admin or a fresh customer.
"""
import os

# Must be set before storefront.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["CODE_DELIVERY"] = "response"
os.environ["ENVIRONMENT"] = "test"
for _key in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET", "FRONTEND_URL"):
    os.environ.pop(_key, None)

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.config import get_settings
from storefront.core.database import create_tables, get_db
from storefront.core.image_hosting import InMemoryImageHost, get_image_host
from storefront.core.notifications import ResponseCodeNotifier, get_notifier
from storefront.main import create_app
from storefront.services.bootstrap import bootstrap

ADMIN_EMAIL = "admin@biscotto.com"
ADMIN_PASSWORD = "admin123"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def sessionmaker(engine):
    maker = async_sessionmaker(engine, expire_on_commit=False)
    async with maker() as db:
        await bootstrap(db, get_settings())
    return maker


@pytest.fixture
def image_host():
    return InMemoryImageHost(folder="test-bakery")


@pytest.fixture
def notifier():
    return ResponseCodeNotifier()


@pytest.fixture
def app(sessionmaker, image_host, notifier):
    app = create_app()

    async def override_get_db():
        async with sessionmaker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_image_host] = lambda: image_host
    app.dependency_overrides[get_notifier] = lambda: notifier
    return app


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test/api") as c:
        yield c


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def signup_verified(client, email="jane@example.com", name="Jane Doe", password="secret123"):
    """Sign up and verify a customer; returns (user, token)."""
    resp = await client.post(
        "/auth/signup", json={"email": email, "name": name, "password": password}
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()
    resp = await client.post(
        "/auth/verify-email",
        json={"user_id": data["user_id"], "code": data["verification_code"]},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    return body["user"], body["token"]


@pytest.fixture
async def admin_headers(client):
    resp = await client.post(
        "/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert resp.status_code == 200, resp.text
    return bearer(resp.json()["token"])


@pytest.fixture
async def customer_headers(client):
    _, token = await signup_verified(client)
    return bearer(token)
