"""Schemas for code generation requests and the SSE progress stream."""

from __future__ import annotations

from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


MAX_SSE_EVENT_BYTES: int = 16_384

TERMINAL_EVENT_TYPES: frozenset[str] = frozenset({"complete", "error"})


class GenerationRequest(BaseModel):
    """Request payload for streaming an application generation."""

    project_id: UUID = Field(..., description="Project whose requirements to build")
    answers: dict[str, Any] = Field(
        default_factory=dict, description="Answers to the clarifying questions"
    )
    preferences: dict[str, Any] = Field(
        default_factory=dict, description="Optional stack or style preferences"
    )

    model_config = ConfigDict(
        extra="forbid", alias_generator=to_camel, populate_by_name=True
    )


class ProgressEvent(BaseModel):
    """One notification of a generation session.

    Serialized as a single JSON object with a `type` discriminator and
    camelCase fields. Unset fields are omitted from the wire form. Use the
    classmethod constructors rather than building events by hand.
    """

    type: Literal["status", "file", "progress", "validation", "complete", "error"]
    message: str | None = None
    filename: str | None = None
    length: int | None = Field(None, ge=0)
    percentage: float | None = Field(None, ge=0.0, le=100.0)
    kind: str | None = None
    detail: str | None = None
    project_id: UUID | None = None
    file_count: int | None = Field(None, ge=0)
    duration: str | None = None
    error: str | None = None
    error_code: str | None = None

    model_config = ConfigDict(
        extra="forbid", alias_generator=to_camel, populate_by_name=True
    )

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_EVENT_TYPES

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_sse(self) -> str:
        """Serialize event to SSE format with size validation."""
        payload = self.model_dump_json(by_alias=True, exclude_none=True)
        if len(payload.encode("utf-8")) > MAX_SSE_EVENT_BYTES:
            raise ValueError("SSE payload exceeded MAX_SSE_EVENT_BYTES")
        return f"data: {payload}\n\n"

    @classmethod
    def status(cls, message: str) -> ProgressEvent:
        return cls(type="status", message=message)

    @classmethod
    def artifact_started(cls, filename: str) -> ProgressEvent:
        return cls(type="file", filename=filename)

    @classmethod
    def progress(cls, length: int, percentage: float) -> ProgressEvent:
        return cls(type="progress", length=length, percentage=percentage)

    @classmethod
    def validation_failed(cls, kind: str, filename: str, detail: str) -> ProgressEvent:
        return cls(type="validation", kind=kind, filename=filename, detail=detail)

    @classmethod
    def completed(
        cls, project_id: UUID, file_count: int, duration_ms: int
    ) -> ProgressEvent:
        return cls(
            type="complete",
            project_id=project_id,
            file_count=file_count,
            duration=f"{duration_ms}ms",
        )

    @classmethod
    def failed(
        cls, error: str, error_code: str, filename: str | None = None
    ) -> ProgressEvent:
        return cls(type="error", error=error, error_code=error_code, filename=filename)


class GeneratedFileOut(BaseModel):
    filename: str
    file_path: str
    file_type: str
    content: str

    model_config = ConfigDict(from_attributes=True)


class ProjectFilesResponse(BaseModel):
    """Committed files of a project together with its status."""

    project_id: UUID
    status: str
    files: list[GeneratedFileOut]

    model_config = ConfigDict(extra="forbid")
