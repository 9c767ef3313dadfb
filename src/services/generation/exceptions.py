"""Domain exceptions for the streamed generation engine.

Every fatal condition of a generation session maps to exactly one of these.
Each carries a stable `error_code` which is sent to the client in the
terminal `error` event so callers can tell a bad generation apart from a
storage outage.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from services.generation.models import ValidationFinding


@dataclass(slots=True, eq=False)
class GenerationError(Exception):
    """Base class for generation domain errors."""

    message: str
    error_code: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.error_code}: {self.message}"


class UpstreamStreamError(GenerationError):
    def __init__(self, message: str = "The generation stream failed") -> None:
        super().__init__(message=message, error_code="upstream-stream-error")


class ArtifactValidationError(GenerationError):
    """A validation finding promoted to a session failure."""

    def __init__(self, finding: ValidationFinding) -> None:
        super().__init__(message=finding.detail, error_code=str(finding.kind))
        self.finding = finding


class InfrastructureError(GenerationError):
    def __init__(self, message: str = "Failed to persist generated files") -> None:
        super().__init__(message=message, error_code="infrastructure-error")
