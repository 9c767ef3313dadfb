"""Closed classification of generated artifacts by file extension.

The validator asks "is this a script or a markup document" through this
module only, so supporting a new kind means adding a row here.
"""

from __future__ import annotations

import posixpath
from enum import StrEnum


ENTRY_ARTIFACT_NAME = "index.html"


class ArtifactKind(StrEnum):
    SCRIPT = "script"
    MARKUP = "markup"
    OTHER = "other"


class ScriptGrammar(StrEnum):
    JAVASCRIPT = "javascript"
    PYTHON = "python"


SCRIPT_GRAMMARS: dict[str, ScriptGrammar] = {
    "js": ScriptGrammar.JAVASCRIPT,
    "mjs": ScriptGrammar.JAVASCRIPT,
    "cjs": ScriptGrammar.JAVASCRIPT,
    "py": ScriptGrammar.PYTHON,
}

MARKUP_EXTENSIONS: frozenset[str] = frozenset({"html", "htm"})


def file_type(name: str) -> str:
    """Lowercase extension of `name` without the dot; empty when there is none."""
    _, ext = posixpath.splitext(posixpath.basename(name))
    return ext[1:].lower()


def classify(name: str) -> ArtifactKind:
    ext = file_type(name)
    if ext in SCRIPT_GRAMMARS:
        return ArtifactKind.SCRIPT
    if ext in MARKUP_EXTENSIONS:
        return ArtifactKind.MARKUP
    return ArtifactKind.OTHER


def script_grammar(name: str) -> ScriptGrammar | None:
    return SCRIPT_GRAMMARS.get(file_type(name))


def is_entry_name(name: str, entry_name: str = ENTRY_ARTIFACT_NAME) -> bool:
    """True when the basename of `name` matches the entry name, ignoring case."""
    return posixpath.basename(name).lower() == entry_name.lower()


def is_entry_capable(name: str) -> bool:
    return classify(name) is ArtifactKind.MARKUP
