"""Shared fixtures for Cuidoteca backend tests.

Uses SQLite (aiosqlite) by default, no PostgreSQL required.
Set TEST_DATABASE_URL to override (e.g. for CI with real PostgreSQL).
"""

import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

# Ensure settings can be loaded without .env
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-unit-tests")

from cuidoteca.database import Base  # noqa: E402

PASSWORD = "senha-segura-123"


# ---------------------------------------------------------------------------
# Engine: fresh in-memory database per test
# ---------------------------------------------------------------------------

def _make_engine():
    if not TEST_DATABASE_URL.startswith("sqlite"):
        return create_async_engine(TEST_DATABASE_URL, echo=False)

    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's implicit transactions break SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@pytest_asyncio.fixture()
async def _engine():
    import cuidoteca.models  # noqa: F401 (populate Base.metadata)

    engine = _make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


# ---------------------------------------------------------------------------
# Reset rate-limiter counters before every test
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _reset_rate_limits():
    """Clear in-memory rate-limit counters so tests never block each other."""
    from cuidoteca.core.rate_limit import limiter

    storage = getattr(limiter, "_storage", None)
    if storage is not None and hasattr(storage, "reset"):
        storage.reset()


# ---------------------------------------------------------------------------
# Per-test session with rollback
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture()
async def db_session(_engine):
    session_factory = async_sessionmaker(
        bind=_engine, class_=AsyncSession, expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


# ---------------------------------------------------------------------------
# HTTP test client
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture()
async def client(db_session: AsyncSession):
    from cuidoteca.database import get_db
    from cuidoteca.main import app

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience: registered users of every self-service role
# ---------------------------------------------------------------------------

async def register_user(
    client: AsyncClient, role: str, name: str | None = None, **extra
) -> dict:
    """Register a user through the API and return a context dict.

    Keys: headers, user_id, email, password, name, tokens
    """
    from cuidoteca.core.security import decode_token

    suffix = uuid.uuid4().hex[:8]
    email = f"{role}-{suffix}@cuidoteca.com.br"
    name = name or f"{role.capitalize()} {suffix}"
    payload = {"email": email, "password": PASSWORD, "name": name, "role": role, **extra}
    if role == "institution":
        payload.setdefault("institution_name", f"Universidade {suffix}")

    resp = await client.post("/api/v1/auth/register", json=payload)
    assert resp.status_code == 201, resp.text
    tokens = resp.json()

    return {
        "headers": {"Authorization": f"Bearer {tokens['access_token']}"},
        "user_id": decode_token(tokens["access_token"])["sub"],
        "email": email,
        "password": PASSWORD,
        "name": name,
        "tokens": tokens,
    }


async def link_to_institution(client: AsyncClient, user: dict, institution: dict) -> None:
    resp = await client.post(
        f"/api/v1/institutions/{institution['user_id']}/connect",
        headers=user["headers"],
    )
    assert resp.status_code == 201, resp.text


@pytest.fixture()
def register(client: AsyncClient):
    """``await register("parent", "Nome")`` inside a test."""

    async def _register(role: str, name: str | None = None, **extra) -> dict:
        return await register_user(client, role, name, **extra)

    return _register


@pytest.fixture()
def link(client: AsyncClient):
    """``await link(user, institution)`` connects a user to an institution."""

    async def _link(user: dict, institution: dict) -> None:
        await link_to_institution(client, user, institution)

    return _link


@pytest_asyncio.fixture()
async def registered_parent(client: AsyncClient):
    return await register_user(client, "parent", "Ana Souza")


@pytest_asyncio.fixture()
async def registered_cuidador(client: AsyncClient):
    return await register_user(client, "cuidador", "Bruno Lima", course="Pedagogia")


@pytest_asyncio.fixture()
async def registered_institution(client: AsyncClient):
    return await register_user(
        client, "institution", "Reitoria", institution_name="Universidade Federal"
    )


@pytest_asyncio.fixture()
async def coordinator(db_session: AsyncSession):
    """Coordinators cannot self-register; insert one directly."""
    from cuidoteca.core.security import create_access_token, get_password_hash
    from cuidoteca.models.user import User, UserRole

    user = User(
        email=f"coord-{uuid.uuid4().hex[:8]}@cuidoteca.com.br",
        password_hash=get_password_hash(PASSWORD),
        name="Coordenação",
        role=UserRole.COORDINATOR,
    )
    db_session.add(user)
    await db_session.flush()

    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {
        "headers": {"Authorization": f"Bearer {token}"},
        "user_id": str(user.id),
        "user": user,
    }


# ---------------------------------------------------------------------------
# Service-level helpers
# ---------------------------------------------------------------------------

@pytest.fixture()
def make_user(db_session: AsyncSession):
    """Factory inserting a ``User`` straight into the session."""
    from cuidoteca.models.user import User, UserRole

    async def _make(role: UserRole, name: str = "Usuário", **fields) -> User:
        user = User(
            email=f"{role.value}-{uuid.uuid4().hex[:8]}@cuidoteca.com.br",
            password_hash="x",
            name=name,
            role=role,
            **fields,
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


@pytest.fixture()
def make_cuidoteca(db_session: AsyncSession):
    from cuidoteca.models.cuidoteca import Cuidoteca

    async def _make(institution, **fields) -> Cuidoteca:
        values = {
            "name": "Cuidoteca Central",
            "hours": "08:00-12:00",
            "days": ["monday", "wednesday", "friday"],
            "max_capacity": 20,
            "min_age": 2,
            "max_age": 6,
        }
        values.update(fields)
        cuidoteca = Cuidoteca(institution_id=institution.id, **values)
        db_session.add(cuidoteca)
        await db_session.flush()
        return cuidoteca

    return _make


@pytest.fixture()
def make_child(db_session: AsyncSession):
    from cuidoteca.models.child import Child

    async def _make(parent, name: str = "Lia", age: int = 4) -> Child:
        child = Child(parent_id=parent.id, name=name, age=age)
        db_session.add(child)
        await db_session.flush()
        return child

    return _make
