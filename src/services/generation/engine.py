"""Drive one generation session from token chunks to a terminal event.

The engine is the only component that knows the order of the stages:

    chunks -> LineReassembler -> BoundaryStateMachine -> (stream end)
           -> ensure_entry_artifact -> ArtifactValidator -> CommitCoordinator

Every run ends with exactly one terminal `ProgressEvent` (`complete` or
`error`) and a terminal session status. The engine never retries.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import AsyncIterable

from core.error_handler import StructuredLogger
from schemas.generation import ProgressEvent
from services.generation.boundary import BoundaryStateMachine
from services.generation.classification import ENTRY_ARTIFACT_NAME
from services.generation.commit import CommitCoordinator
from services.generation.emitter import ProgressEmitter
from services.generation.exceptions import (
    ArtifactValidationError,
    GenerationError,
    InfrastructureError,
    UpstreamStreamError,
)
from services.generation.fallback import ensure_entry_artifact
from services.generation.line_reassembler import LineReassembler
from services.generation.models import (
    ArtifactDraft,
    ExtractionSession,
    SessionStatus,
)
from services.generation.validator import ArtifactValidator


logger = StructuredLogger(__name__)

MAX_ERROR_MESSAGE_CHARS = 1000
MAX_PROGRESS_PERCENTAGE = 99.0
STARTING_MESSAGE = "Starting code generation..."


def _truncate(message: str, limit: int = MAX_ERROR_MESSAGE_CHARS) -> str:
    if len(message) <= limit:
        return message
    return message[: limit - 3] + "..."


def progress_percentage(length: int, expected_length: int) -> float:
    """Estimated completion, capped below 100 until the session completes."""
    if expected_length <= 0:
        return 0.0
    return round(min(MAX_PROGRESS_PERCENTAGE, 100.0 * length / expected_length), 2)


class ExtractionEngine:
    """Turn a streamed multi-file response into a committed artifact set.

    One engine instance runs one session. Collaborators are injected so the
    same engine can be driven by a live provider, a recorded transcript or a
    test fixture.
    """

    def __init__(
        self,
        project_id: uuid.UUID,
        emitter: ProgressEmitter,
        committer: CommitCoordinator,
        validator: ArtifactValidator | None = None,
        expected_length: int = 32_000,
        entry_name: str = ENTRY_ARTIFACT_NAME,
    ) -> None:
        self.project_id = project_id
        self.emitter = emitter
        self.committer = committer
        self.entry_name = entry_name
        self.validator = validator or ArtifactValidator(entry_name=entry_name)
        self.expected_length = expected_length
        self.session = ExtractionSession(project_id=project_id)

    async def run(self, chunks: AsyncIterable[str]) -> ExtractionSession:
        """Consume `chunks` and finish the session; never raises GenerationError."""
        started = time.monotonic()
        session = self.session
        reassembler = LineReassembler()
        machine = BoundaryStateMachine(
            on_started=self._artifact_started, on_sealed=self._artifact_sealed
        )

        self.emitter.emit(ProgressEvent.status(STARTING_MESSAGE))
        logger.info("Generation session started", project_id=str(self.project_id))

        try:
            async for chunk in chunks:
                if not chunk:
                    continue
                for line in reassembler.feed(chunk):
                    machine.feed_line(line)
                session.length += len(chunk)
                self.emitter.emit(
                    ProgressEvent.progress(
                        session.length,
                        progress_percentage(session.length, self.expected_length),
                    )
                )
        except Exception as exc:
            logger.exception(
                "Generation stream failed",
                project_id=str(self.project_id),
                length=session.length,
            )
            detail = str(exc) or type(exc).__name__
            await self._fail(UpstreamStreamError(_truncate(detail)))
            return session

        tail = reassembler.flush()
        if tail is not None:
            machine.feed_line(tail, terminated=False)
        machine.finish()
        if machine.discarded_lines:
            logger.debug(
                "Ignored text outside file markers",
                project_id=str(self.project_id),
                discarded_lines=machine.discarded_lines,
            )

        action = ensure_entry_artifact(session.artifacts, self.entry_name)
        logger.info(
            "Stream finished",
            project_id=str(self.project_id),
            length=session.length,
            artifact_count=len(session.artifacts),
            entry_fallback=str(action),
        )

        finding = self.validator.validate(session.artifacts)
        if finding is not None:
            session.finding = finding
            self.emitter.emit(
                ProgressEvent.validation_failed(
                    str(finding.kind), finding.artifact_name, _truncate(finding.detail)
                )
            )
            await self._fail(ArtifactValidationError(finding))
            return session

        try:
            committed = await self.committer.commit(self.project_id, session.artifacts)
        except InfrastructureError as exc:
            await self._fail(exc)
            return session

        session.status = SessionStatus.COMPLETED
        duration_ms = int((time.monotonic() - started) * 1000)
        self.emitter.emit(
            ProgressEvent.completed(self.project_id, committed.file_count, duration_ms)
        )
        logger.info(
            "Generation session completed",
            project_id=str(self.project_id),
            file_count=committed.file_count,
            duration_ms=duration_ms,
        )
        return session

    def _artifact_started(self, name: str) -> None:
        self.emitter.emit(ProgressEvent.artifact_started(name))

    def _artifact_sealed(self, draft: ArtifactDraft) -> None:
        superseded = self.session.add_sealed(draft)
        if superseded is not None:
            logger.warning(
                "File declared more than once; keeping the later declaration",
                project_id=str(self.project_id),
                filename=draft.name,
            )

    async def _fail(self, error: GenerationError) -> None:
        session = self.session
        session.status = SessionStatus.FAILED
        session.error = error
        await self.committer.record_failure(self.project_id, error)
        filename = session.finding.artifact_name if session.finding else None
        self.emitter.emit(
            ProgressEvent.failed(_truncate(error.message), error.error_code, filename)
        )
