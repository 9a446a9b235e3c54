"""
Shared pytest fixtures.

Every test gets its own in-memory SQLite database, so nothing leaks between
tests.
"""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from finops.api.app import create_app
from finops.api.dependencies import build_container
from finops.config.settings import Environment, Settings
from finops.models.user import UserRole
from finops.repositories.user_repository import UserRepository

USER_EMAIL = "trader@example.com"
USER_PASSWORD = "s3cret-pass"
ADMIN_EMAIL = "admin@app.com"
ADMIN_PASSWORD = "admin123"


@pytest.fixture
def settings():
    """Testing settings backed by in-memory SQLite and cheap bcrypt."""
    settings = Settings(environment=Environment.TESTING)
    settings.database.url = "sqlite+aiosqlite:///:memory:"
    settings.api.jwt_secret = "test-signing-secret"
    settings.auth.bcrypt_rounds = 4
    return settings.validate()


@pytest_asyncio.fixture
async def container(settings):
    """Fully wired services over a fresh schema."""
    container = build_container(settings)
    await container.database.create_schema()
    yield container
    await container.database.close()


async def create_user(container, email: str, password: str, role: UserRole = UserRole.USER):
    password_hash = container.auth_service.hasher.hash_password(password)
    async with container.database.transaction() as session:
        user = await UserRepository(session).add(email, password_hash, role=role)
    return user.summary()


@pytest.fixture
def make_user(container):
    """Factory for extra users in the test database."""
    async def _make_user(email: str, password: str = USER_PASSWORD, role: UserRole = UserRole.USER):
        return await create_user(container, email, password, role)
    return _make_user


@pytest_asyncio.fixture
async def user(container):
    """A regular user."""
    return await create_user(container, USER_EMAIL, USER_PASSWORD)


@pytest.fixture
def client(settings):
    """Test client over an app with its own database; lifespan creates the schema."""
    app = create_app(settings=settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def admin_headers(client):
    """Create the first admin through the setup endpoint and log in."""
    response = client.post(
        "/api/setup/admin",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 201

    response = client.post(
        "/api/auth/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
