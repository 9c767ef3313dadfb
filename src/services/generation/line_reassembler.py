"""Reassemble complete lines from arbitrarily split text chunks."""

from __future__ import annotations


class LineReassembler:
    """Turn a sequence of text chunks into complete lines.

    Only `\\n` terminates a line. A `\\r` before it stays in the line text, so
    a `\\r\\n` pair split across two chunks yields the same lines as an
    unsplit one.
    """

    def __init__(self) -> None:
        self._pending = ""

    def feed(self, chunk: str) -> list[str]:
        """Return the lines completed by `chunk`, in order, without terminators."""
        if not chunk:
            return []
        segments = (self._pending + chunk).split("\n")
        self._pending = segments.pop()
        return segments

    def flush(self) -> str | None:
        """Return the unterminated trailing fragment, if any, and clear it."""
        fragment, self._pending = self._pending, ""
        return fragment or None

    @property
    def pending(self) -> str:
        return self._pending
