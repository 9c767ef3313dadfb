"""Tests for the all-or-nothing commit of generated files."""

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from models import GeneratedFile, Project
from services.generation.commit import CommitCoordinator
from services.generation.exceptions import InfrastructureError, UpstreamStreamError
from services.generation.models import ArtifactDraft


def _artifacts(named: dict[str, str]) -> dict[str, ArtifactDraft]:
    return {name: ArtifactDraft.sealed_with(name, text) for name, text in named.items()}


async def _files(session_factory, project_id) -> list[GeneratedFile]:
    async with session_factory() as db:
        result = await db.execute(
            select(GeneratedFile)
            .where(GeneratedFile.project_id == project_id)
            .order_by(GeneratedFile.file_path)
        )
        return list(result.scalars().all())


async def _status(session_factory, project_id) -> str:
    async with session_factory() as db:
        proj = await db.get(Project, project_id)
        assert proj is not None
        return proj.status


@pytest.mark.asyncio
async def test_commit_writes_files_and_status(committer, session_factory, project):
    result = await committer.commit(
        project.id, _artifacts({"index.html": "<html></html>", "src/app.js": "1;\n"})
    )

    assert result.file_count == 2
    assert result.project_status == "generated"
    assert {f.name: f.file_type for f in result.files} == {
        "index.html": "html",
        "src/app.js": "js",
    }
    rows = await _files(session_factory, project.id)
    assert [(r.filename, r.file_path, r.file_type, r.content) for r in rows] == [
        ("index.html", "index.html", "html", "<html></html>"),
        ("src/app.js", "src/app.js", "js", "1;\n"),
    ]
    assert await _status(session_factory, project.id) == "generated"


@pytest.mark.asyncio
async def test_commit_replaces_previous_generation(committer, session_factory, project):
    await committer.commit(project.id, _artifacts({"index.html": "v1", "old.js": "1;"}))
    await committer.commit(project.id, _artifacts({"index.html": "v2"}))

    rows = await _files(session_factory, project.id)
    assert [(r.filename, r.content) for r in rows] == [("index.html", "v2")]


@pytest.mark.asyncio
async def test_failed_write_rolls_back_everything(committer, session_factory, project):
    await committer.commit(project.id, _artifacts({"index.html": "kept"}))

    with (
        patch(
            "services.generation.commit.set_project_status",
            side_effect=OperationalError("UPDATE projects", {}, Exception("db down")),
        ),
        pytest.raises(InfrastructureError) as excinfo,
    ):
        await committer.commit(project.id, _artifacts({"index.html": "new"}))

    assert excinfo.value.error_code == "infrastructure-error"
    rows = await _files(session_factory, project.id)
    assert [r.content for r in rows] == ["kept"]


@pytest.mark.asyncio
async def test_commit_for_unknown_project_writes_nothing(session_factory):
    committer = CommitCoordinator(session_factory)
    missing = uuid.uuid4()
    with pytest.raises(InfrastructureError):
        await committer.commit(missing, _artifacts({"index.html": "x"}))
    assert await _files(session_factory, missing) == []


@pytest.mark.asyncio
async def test_record_failure_sets_status_only(committer, session_factory, project):
    ok = await committer.record_failure(project.id, UpstreamStreamError("reset"))
    assert ok is True
    assert await _status(session_factory, project.id) == "failed"
    assert await _files(session_factory, project.id) == []


@pytest.mark.asyncio
async def test_record_failure_swallows_storage_errors(committer, project):
    with patch(
        "services.generation.commit.set_project_status",
        side_effect=OperationalError("UPDATE projects", {}, Exception("db down")),
    ):
        ok = await committer.record_failure(project.id, UpstreamStreamError())
    assert ok is False


class _UnreachableDatabase:
    """Session factory whose connection attempt is refused, as asyncpg does."""

    def __call__(self):
        return self

    async def __aenter__(self):
        raise ConnectionRefusedError(111, "Connect call failed ('127.0.0.1', 1)")

    async def __aexit__(self, *exc_info):
        return False


@pytest.mark.asyncio
async def test_commit_reports_refused_connection_as_infrastructure_error():
    committer = CommitCoordinator(_UnreachableDatabase())
    with pytest.raises(InfrastructureError) as excinfo:
        await committer.commit(uuid.uuid4(), _artifacts({"index.html": "x"}))
    assert isinstance(excinfo.value.__cause__, ConnectionRefusedError)


@pytest.mark.asyncio
async def test_record_failure_swallows_refused_connection():
    committer = CommitCoordinator(_UnreachableDatabase())
    ok = await committer.record_failure(uuid.uuid4(), UpstreamStreamError())
    assert ok is False
