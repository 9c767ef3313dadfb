"""Domain models for streamed multi-file generation.

These are the in-memory contract objects passed between the engine stages:

* ArtifactDraft        - one named file being (or already) reconstructed from
  the token stream.
* ValidationFinding    - the single violation reported by the validator.
* ExtractionSession    - per-request state owned by the engine.
* CommittedArtifactSet - what the commit coordinator durably wrote.

The wire form of progress notifications lives in `schemas.generation`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from services.generation.exceptions import GenerationError


class FindingKind(StrEnum):
    MISSING_ENTRY = "missing-entry"
    SYNTAX_ERROR = "syntax-error"
    STRUCTURAL_ERROR = "structural-error"
    MISSING_REFERENCE = "missing-reference"


class SessionStatus(StrEnum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True)
class ArtifactDraft:
    """A named text buffer filled line by line until sealed."""

    name: str
    parts: list[str] = field(default_factory=list)
    sealed: bool = False
    # True when sealed by a following start marker or the end of the stream
    # rather than an explicit end marker
    implicitly_sealed: bool = False

    def append(self, text: str) -> None:
        if self.sealed:
            raise RuntimeError(f"Artifact {self.name!r} is sealed")
        self.parts.append(text)

    def seal(self, *, implicit: bool = False) -> None:
        self.sealed = True
        self.implicitly_sealed = implicit

    @property
    def content(self) -> str:
        return "".join(self.parts)

    @classmethod
    def sealed_with(cls, name: str, content: str) -> ArtifactDraft:
        """Build an already sealed draft (used for synthesised artifacts)."""
        return cls(name=name, parts=[content], sealed=True)


@dataclass(slots=True, frozen=True)
class ValidationFinding:
    kind: FindingKind
    artifact_name: str
    detail: str


@dataclass(slots=True)
class ExtractionSession:
    """State of one streamed generation request.

    `drafts` keeps every sealed draft in the order it was opened, including
    ones superseded by a later declaration of the same name. `artifacts`
    is the resolved set that gets validated and committed.
    """

    project_id: uuid.UUID
    drafts: list[ArtifactDraft] = field(default_factory=list)
    artifacts: dict[str, ArtifactDraft] = field(default_factory=dict)
    length: int = 0
    status: SessionStatus = SessionStatus.RUNNING
    finding: ValidationFinding | None = None
    error: GenerationError | None = None

    def add_sealed(self, draft: ArtifactDraft) -> ArtifactDraft | None:
        """Record a sealed draft; return the draft it superseded, if any."""
        self.drafts.append(draft)
        previous = self.artifacts.pop(draft.name, None)
        self.artifacts[draft.name] = draft
        return previous

    @property
    def artifact_names(self) -> list[str]:
        return list(self.artifacts)

    @property
    def is_terminal(self) -> bool:
        return self.status is not SessionStatus.RUNNING


@dataclass(slots=True, frozen=True)
class CommittedFile:
    name: str
    file_type: str
    content: str


@dataclass(slots=True, frozen=True)
class CommittedArtifactSet:
    project_id: uuid.UUID
    files: tuple[CommittedFile, ...]
    project_status: str

    @property
    def file_count(self) -> int:
        return len(self.files)
