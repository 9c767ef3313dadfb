"""Bridge a generation session to a Server-Sent Events response.

The engine runs in its own task and publishes events into a queue which the
response generator drains. When the client goes away the generator is
closed, the emitter is detached and the task carries on to validation and
commit, so a disconnect never leaves a half-written project behind.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import AsyncIterator
from typing import Any

from core.config import get_settings
from core.error_handler import StructuredLogger
from core.exceptions import GenerationUnavailableError
from dependencies.db import AsyncSessionLocal
from schemas.generation import ProgressEvent
from services.ai.model_factory import is_generation_configured
from services.ai.stream_provider import PydanticAIStreamProvider, TokenStreamProvider
from services.generation.commit import CommitCoordinator
from services.generation.emitter import ProgressEmitter
from services.generation.engine import ExtractionEngine
from services.generation.exceptions import GenerationError


logger = StructuredLogger(__name__)

INTERNAL_ERROR_CODE = "internal-error"

# Strong references to running sessions; the event loop only keeps weak ones.
_background_tasks: set[asyncio.Task[Any]] = set()


class GenerationOrchestrator:
    """Start generation sessions and expose their events as SSE frames."""

    def __init__(
        self,
        provider: TokenStreamProvider,
        committer: CommitCoordinator,
        expected_length: int | None = None,
    ) -> None:
        self.provider = provider
        self.committer = committer
        self.expected_length = (
            expected_length or get_settings().GENERATION_EXPECTED_LENGTH
        )

    def create_engine(
        self, project_id: uuid.UUID, emitter: ProgressEmitter
    ) -> ExtractionEngine:
        return ExtractionEngine(
            project_id=project_id,
            emitter=emitter,
            committer=self.committer,
            expected_length=self.expected_length,
        )

    async def stream(self, project_id: uuid.UUID, prompt: str) -> AsyncIterator[str]:
        """Yield `data: ...` frames until the session's terminal event."""
        queue: asyncio.Queue[ProgressEvent | None] = asyncio.Queue()
        emitter = ProgressEmitter(queue.put_nowait)
        engine = self.create_engine(project_id, emitter)

        task = asyncio.create_task(
            self._run(engine, prompt), name=f"generation-{project_id}"
        )
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)
        # Unblocks the reader even if the task dies without a terminal event
        task.add_done_callback(lambda _task: queue.put_nowait(None))

        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                try:
                    frame = event.to_sse()
                except ValueError:
                    logger.warning(
                        "Dropping oversized event",
                        project_id=str(project_id),
                        event_type=event.type,
                    )
                    if not event.is_terminal:
                        continue
                    frame = ProgressEvent.failed(
                        "Generation finished but its result could not be reported",
                        INTERNAL_ERROR_CODE,
                    ).to_sse()
                yield frame
                if event.is_terminal:
                    break
        finally:
            emitter.detach()
            if not emitter.terminated and not task.done():
                logger.info(
                    "Client disconnected; generation continues in background",
                    project_id=str(project_id),
                )

    async def _run(self, engine: ExtractionEngine, prompt: str) -> None:
        try:
            await engine.run(self.provider.stream_text(prompt))
        except Exception:
            logger.exception(
                "Generation session crashed", project_id=str(engine.project_id)
            )
            if engine.emitter.terminated:
                return
            error = GenerationError(
                message="Internal error during generation",
                error_code=INTERNAL_ERROR_CODE,
            )
            try:
                await self.committer.record_failure(engine.project_id, error)
            except Exception:
                logger.exception(
                    "Failed to record crashed generation",
                    project_id=str(engine.project_id),
                )
            finally:
                engine.emitter.emit(
                    ProgressEvent.failed(error.message, error.error_code)
                )


def get_generation_orchestrator() -> GenerationOrchestrator:
    """FastAPI DI provider for the generation orchestrator.

    Raises:
        GenerationUnavailableError: when no LLM provider has credentials, so
            the request is refused before a stream is opened.
    """
    if not is_generation_configured():
        raise GenerationUnavailableError("No LLM provider is configured")
    return GenerationOrchestrator(
        provider=PydanticAIStreamProvider(),
        committer=CommitCoordinator(AsyncSessionLocal),
    )
