"""Shared test fixtures for pytest.

We set ENVIRONMENT=test early so importing modules that instantiate settings
succeeds without needing an external .env file during tests.
"""

import os
import uuid
from collections.abc import AsyncGenerator, AsyncIterator, Iterable
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


os.environ.setdefault("ENVIRONMENT", "test")

from dependencies.db import create_session_factory, get_db
from main import app
from models import Document, Project
from models.base import Base
from services.generation.commit import CommitCoordinator
from services.generation.orchestrator import (
    GenerationOrchestrator,
    get_generation_orchestrator,
)


class FakeTokenProvider:
    """Replays fixed chunks; optionally raises after them."""

    def __init__(self, chunks: Iterable[str], error: Exception | None = None):
        self.chunks = list(chunks)
        self.error = error
        self.prompts: list[str] = []

    async def stream_text(self, prompt: str) -> AsyncIterator[str]:
        self.prompts.append(prompt)
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


@pytest_asyncio.fixture
async def session_factory(
    tmp_path: Path,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh SQLite database per test.

    A file database gives every session its own connection, like production,
    so the background commit never shares a transaction with the request.
    """
    factory = create_session_factory(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    engine = factory.kw["bind"]
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def project(session_factory: async_sessionmaker[AsyncSession]) -> Project:
    """A project with one requirements document."""
    async with session_factory() as db:
        proj = Project(
            id=uuid.uuid4(),
            name="Todo app",
            analysis={"summary": "A simple todo list"},
        )
        db.add(proj)
        db.add(
            Document(
                project_id=proj.id,
                filename="requirements.md",
                content="Users can add and remove todos.",
            )
        )
        await db.commit()
        return proj


@pytest.fixture
def committer(session_factory: async_sessionmaker[AsyncSession]) -> CommitCoordinator:
    return CommitCoordinator(session_factory)


@pytest.fixture
def make_provider() -> type[FakeTokenProvider]:
    return FakeTokenProvider


@pytest.fixture
def token_provider() -> FakeTokenProvider:
    """Provider used by `async_client`; tests set `.chunks` / `.error`."""
    return FakeTokenProvider([])


@pytest_asyncio.fixture
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    token_provider: FakeTokenProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """Async client backed by the test database and a fake token provider."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    def _override_orchestrator() -> GenerationOrchestrator:
        return GenerationOrchestrator(
            provider=token_provider,
            committer=CommitCoordinator(session_factory),
            expected_length=1000,
        )

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_generation_orchestrator] = _override_orchestrator
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_generation_orchestrator, None)
