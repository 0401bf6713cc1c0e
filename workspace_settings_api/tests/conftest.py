"""
Shared fixtures.

The database is an in-memory SQLite (aiosqlite) shared through a StaticPool so
the test session and the request sessions see the same data. Outbound HTTP
made by the integration client is served by httpx.MockTransport from the
`http_stub` routes.
"""

from typing import Callable, Dict, Tuple

import httpx
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import settings_api.db.models  # noqa: F401
from settings_api.core.deps import get_integration_client
from settings_api.core.security import create_access_token
from settings_api.db.base import Base
from settings_api.db.models.tenancy import User, UserType, Workspace
from settings_api.db.session import get_async_session
from settings_api.services.integrations import IntegrationClient

StubResponse = Tuple[int, dict]


@pytest.fixture(autouse=True)
def app_env(tmp_path, monkeypatch):
    """Point file storage and caches at tmp_path and pin the deployment mode."""
    monkeypatch.setenv("IS_SAAS", "true")
    monkeypatch.setenv("IS_DEMO", "false")
    monkeypatch.setenv("JWT_SECRET_KEY", "test-secret")
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "storage"))
    monkeypatch.setenv("CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("APP_URL", "http://testserver")
    monkeypatch.setenv("RUN_MIGRATIONS_ON_STARTUP", "false")
    return tmp_path


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_maker):
    """Session used by fixtures to create users and workspaces."""
    async with session_maker() as s:
        yield s


@pytest_asyncio.fixture
async def store_session(session_maker):
    """Separate session for the code under test, so rollbacks never expire fixture objects."""
    async with session_maker() as s:
        yield s


async def _create_user(session, email, user_type, created_by=None, with_workspace=False, lang="en") -> User:
    user = User(name=email.split("@")[0], email=email, type=user_type, lang=lang, created_by=created_by)
    session.add(user)
    await session.flush()
    if with_workspace:
        workspace = Workspace(name=f"{user.name} workspace", owner_id=user.id)
        session.add(workspace)
        await session.flush()
        user.current_workspace_id = workspace.id
    await session.commit()
    return user


@pytest_asyncio.fixture
async def superadmin(session) -> User:
    return await _create_user(session, "root@acme.com", UserType.SUPERADMIN)


@pytest_asyncio.fixture
async def company(session) -> User:
    """Company owner with a current workspace."""
    return await _create_user(session, "owner@acme.com", UserType.COMPANY, with_workspace=True)


@pytest_asyncio.fixture
async def second_company(session, company) -> User:
    """Company-type admin created by the owner, with a workspace of its own."""
    return await _create_user(
        session, "admin@acme.com", UserType.COMPANY, created_by=company.id, with_workspace=True
    )


@pytest_asyncio.fixture
async def member(session, company) -> User:
    return await _create_user(session, "member@acme.com", UserType.MEMBER, created_by=company.id)


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    def _headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}

    return _headers


@pytest.fixture(scope="session")
def service_account() -> Dict[str, str]:
    """Google service account credentials with a freshly generated RSA key."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    return {"type": "service_account", "client_email": "svc@acme.iam", "private_key": pem}


@pytest.fixture
def http_stub() -> Dict[Tuple[str, str], StubResponse]:
    """
    Responses for outbound calls keyed by (method, url without query).

    Tests may change entries between requests; unknown URLs answer 404.
    """
    return {}


@pytest.fixture
def integration_client(http_stub) -> IntegrationClient:
    def handler(request: httpx.Request) -> httpx.Response:
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        status_code, body = http_stub.get((request.method, url), (404, {"error": "not stubbed"}))
        return httpx.Response(status_code, json=body)

    return IntegrationClient(timeout=5.0, transport=httpx.MockTransport(handler), app_name="Test Suite")


@pytest_asyncio.fixture
async def client(session_maker, integration_client):
    from settings_api.api.main import app

    async def _session_override():
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_async_session] = _session_override
    app.dependency_overrides[get_integration_client] = lambda: integration_client
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()
