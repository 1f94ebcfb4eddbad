import os
import uuid

os.environ.setdefault("HACKTEAM_SESSION_SECRET", "test-secret-value-123456")
os.environ.setdefault("HACKTEAM_RESEND_API_KEY", "")

import pytest
from fastapi import Header, HTTPException, status
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from hackteam import models  # noqa: F401
from hackteam.api import deps
from hackteam.db.base import Base
from hackteam.models.event import Event
from hackteam.models.profile import Profile
from hackteam.models.project import Project
from hackteam.services.identity import CallerIdentity
from main import app


def create_sqlite_engine(path):
    # Arquivo em vez de :memory: para que sessões diferentes usem conexões diferentes
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}")

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine(tmp_path):
    engine = create_sqlite_engine(tmp_path / "hackteam.db")
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
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_caller_identity(x_profile_id: str | None = Header(default=None)) -> CallerIdentity:
        if not x_profile_id:
            raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Sessão inválida")
        return CallerIdentity(profile_id=uuid.UUID(x_profile_id))

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_caller_identity] = override_get_caller_identity

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_profile(session_factory):
    async def _make(username: str | None, **overrides) -> Profile:
        data = {
            "auth_subject": f"auth|{uuid.uuid4().hex}",
            "username": username,
            "display_name": (username or "anônimo").capitalize(),
            "email": f"{username}@example.com" if username else None,
        }
        data.update(overrides)
        async with session_factory() as session:
            profile = Profile(**data)
            session.add(profile)
            await session.commit()
            await session.refresh(profile)
            return profile

    return _make


@pytest.fixture
def make_project(session_factory):
    async def _make(owner: Profile, name: str = "Projeto", slug: str | None = None) -> Project:
        async with session_factory() as session:
            project = Project(owner_profile_id=owner.id, name=name, slug=slug)
            session.add(project)
            await session.commit()
            await session.refresh(project)
            return project

    return _make


@pytest.fixture
def make_event(session_factory):
    async def _make(slug: str = "hack-2026") -> Event:
        async with session_factory() as session:
            hackathon = Event(name=slug.replace("-", " ").title(), slug=slug)
            session.add(hackathon)
            await session.commit()
            await session.refresh(hackathon)
            return hackathon

    return _make


@pytest.fixture
def add_rows(session_factory):
    """Insere linhas arbitrárias (vínculos com eventos, inscrições, moderação)."""

    async def _add(*rows) -> None:
        async with session_factory() as session:
            session.add_all(rows)
            await session.commit()

    return _add


@pytest.fixture
def count_rows(session_factory):
    async def _count(model, *criteria) -> int:
        async with session_factory() as session:
            stmt = select(func.count()).select_from(model)
            if criteria:
                stmt = stmt.where(*criteria)
            result = await session.execute(stmt)
            return int(result.scalar_one())

    return _count


@pytest.fixture
def fetch(session_factory):
    """Lê uma linha em sessão nova, sem passar pelo identity map dos testes."""

    async def _fetch(model, ident):
        async with session_factory() as session:
            return await session.get(model, ident)

    return _fetch

