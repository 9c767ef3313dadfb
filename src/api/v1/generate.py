"""Streaming application generation endpoint."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from core.exceptions import ProjectNotFoundError
from crud.projects import get_project, get_project_documents
from dependencies.db import DbSession
from schemas.generation import GenerationRequest
from services.ai.prompts import build_generation_prompt
from services.generation.orchestrator import (
    GenerationOrchestrator,
    get_generation_orchestrator,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/generate", tags=["generation"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post(
    "",
    summary="Generate an application from a project's requirements via SSE",
    responses={404: {"description": "Project not found"}},
)
async def generate_application(
    request: GenerationRequest,
    db: DbSession,
    orchestrator: Annotated[
        GenerationOrchestrator, Depends(get_generation_orchestrator)
    ],
) -> StreamingResponse:
    """Stream generation progress as Server-Sent Events.

    Event JSON schema (sent in `data:` lines, camelCase keys):
      status: {message}
      file: {filename} when a file starts
      progress: {length, percentage} after every received chunk
      validation: {kind, filename, detail} when the result is rejected
      complete: {projectId, fileCount, duration} (terminal)
      error: {error, errorCode, filename?} (terminal)
    """
    project = await get_project(db, request.project_id)
    if project is None:
        raise ProjectNotFoundError(f"Project {request.project_id} not found")

    documents = await get_project_documents(db, request.project_id)
    prompt = build_generation_prompt(
        documents,
        analysis=project.analysis,
        answers=request.answers,
        preferences=request.preferences,
    )
    logger.info(
        "Generating project %s from %d documents", project.id, len(documents)
    )

    return StreamingResponse(
        orchestrator.stream(project.id, prompt),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
