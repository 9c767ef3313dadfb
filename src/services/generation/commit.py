"""All-or-nothing persistence of a validated artifact set."""

from __future__ import annotations

import uuid
from collections.abc import Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.error_handler import StructuredLogger
from crud.generated_files import replace_generated_files
from crud.projects import set_project_status
from models.projects import PROJECT_STATUS_FAILED, PROJECT_STATUS_GENERATED
from services.generation.classification import file_type
from services.generation.exceptions import GenerationError, InfrastructureError
from services.generation.models import (
    ArtifactDraft,
    CommittedArtifactSet,
    CommittedFile,
)


logger = StructuredLogger(__name__)


class CommitCoordinator:
    """Write generation results through short-lived sessions of its own.

    Each call opens a fresh session from `session_factory`, so concurrent
    sessions for different projects never share a connection or transaction
    and a streaming response that outlives its request can still commit.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def commit(
        self, project_id: uuid.UUID, artifacts: Mapping[str, ArtifactDraft]
    ) -> CommittedArtifactSet:
        """Store every artifact and mark the project generated, atomically.

        Raises:
            InfrastructureError: when any write fails; nothing is kept.
        """
        files = tuple(
            CommittedFile(name=name, file_type=file_type(name), content=draft.content)
            for name, draft in artifacts.items()
        )
        try:
            async with self._session_factory() as db, db.begin():
                await replace_generated_files(db, project_id, files)
                updated = await set_project_status(
                    db, project_id, PROJECT_STATUS_GENERATED
                )
                if updated == 0:
                    # Raising inside the block rolls the file rows back
                    raise InfrastructureError(
                        f"Project {project_id} disappeared before commit"
                    )
        except (SQLAlchemyError, OSError) as exc:
            logger.exception(
                "Generated files commit failed",
                project_id=str(project_id),
                file_count=len(files),
            )
            raise InfrastructureError(
                "Failed to persist generated files; no files were saved"
            ) from exc

        logger.info(
            "Generated files committed",
            project_id=str(project_id),
            file_count=len(files),
        )
        return CommittedArtifactSet(
            project_id=project_id, files=files, project_status=PROJECT_STATUS_GENERATED
        )

    async def record_failure(
        self, project_id: uuid.UUID, error: GenerationError
    ) -> bool:
        """Mark the project failed; no artifacts are written.

        Returns False when the status itself could not be stored. That is
        logged and not raised: the session has already failed and the
        client is told so either way.
        """
        try:
            async with self._session_factory() as db, db.begin():
                await set_project_status(db, project_id, PROJECT_STATUS_FAILED)
        except (SQLAlchemyError, OSError):
            logger.exception(
                "Failed to record generation failure status",
                project_id=str(project_id),
                error_code=error.error_code,
            )
            return False
        logger.warning(
            "Generation failed",
            project_id=str(project_id),
            error_code=error.error_code,
            detail=error.message,
        )
        return True
