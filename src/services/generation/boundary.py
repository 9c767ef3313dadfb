"""File boundary state machine for the generation token stream.

The generative service is asked to format its answer as::

    === FILENAME: path/to/file.ext ===
    ...file content...
    === END FILE ===

Each complete line is classified as a start marker, an end marker, or plain
content and applied to a two-state machine:

    IDLE --start--> COLLECTING(name) --end--> IDLE
    COLLECTING(a) --start--> COLLECTING(b)   (a is sealed as-is)

Content lines while IDLE are prose around the files and are discarded; the
count is kept so callers and tests can see it happened.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from enum import StrEnum

from services.generation.models import ArtifactDraft


logger = logging.getLogger(__name__)

START_MARKER_RE = re.compile(r"^===\s*FILENAME:\s*(?P<path>.*?)(?:\s*===)*$")
END_MARKER_RE = re.compile(r"^===\s*END\s+FILE\s*===")


class BoundaryState(StrEnum):
    IDLE = "idle"
    COLLECTING = "collecting"


def normalize_artifact_path(raw: str) -> str:
    """Normalize a marker path: trim, forward slashes, no leading ./ or /."""
    path = raw.strip().strip("`\"'").strip().replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


def parse_start_marker(line: str) -> str | None:
    """Return the artifact path named by a start marker line, else None."""
    match = START_MARKER_RE.match(line.strip())
    if match is None:
        return None
    path = normalize_artifact_path(match.group("path"))
    return path or None


def is_end_marker(line: str) -> bool:
    return END_MARKER_RE.match(line.strip()) is not None


class BoundaryStateMachine:
    """Accumulate artifact drafts from a sequence of complete lines.

    Args:
        on_started: called with the artifact name whenever a start marker
            opens a draft.
        on_sealed: called with every draft as it is sealed.
    """

    def __init__(
        self,
        on_started: Callable[[str], None],
        on_sealed: Callable[[ArtifactDraft], None],
    ) -> None:
        self._on_started = on_started
        self._on_sealed = on_sealed
        self._current: ArtifactDraft | None = None
        self.discarded_lines = 0

    @property
    def state(self) -> BoundaryState:
        if self._current is None:
            return BoundaryState.IDLE
        return BoundaryState.COLLECTING

    @property
    def current_name(self) -> str | None:
        return self._current.name if self._current is not None else None

    def feed_line(self, line: str, terminated: bool = True) -> None:
        """Apply one line. `terminated` is False only for a flushed fragment."""
        name = parse_start_marker(line)
        if name is not None:
            self._start(name)
            return

        if self._current is None:
            # IDLE: inter-file prose or a stray end marker
            self.discarded_lines += 1
            return

        if is_end_marker(line):
            self._seal(implicit=False)
            return

        self._current.append(line + "\n" if terminated else line)

    def finish(self) -> None:
        """Seal the open draft, if any, at the end of the stream."""
        if self._current is not None:
            logger.info(
                "Stream ended while collecting %s; sealing without end marker",
                self._current.name,
            )
            self._seal(implicit=True)

    def _start(self, name: str) -> None:
        if self._current is not None:
            logger.info(
                "Start marker for %s while collecting %s; sealing %s as-is",
                name,
                self._current.name,
                self._current.name,
            )
            self._seal(implicit=True)
        self._current = ArtifactDraft(name=name)
        self._on_started(name)

    def _seal(self, *, implicit: bool) -> None:
        draft = self._current
        if draft is None:  # pragma: no cover - guarded by callers
            return
        draft.seal(implicit=implicit)
        self._current = None
        self._on_sealed(draft)
