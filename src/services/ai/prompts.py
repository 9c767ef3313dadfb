"""Prompt construction for application generation."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any, Protocol


GENERATION_SYSTEM_PROMPT = (
    "You are an expert software developer. You turn requirements into "
    "complete, production-ready applications and reply with files only, in "
    "the exact file format you are given."
)

OUTPUT_FORMAT_INSTRUCTIONS = """Generate a complete application with:
1. All necessary source code files
2. An index.html entry page that loads the application's scripts and styles
3. Configuration files (package.json, .env.example, etc.)
4. README.md with setup instructions
5. Database schema (if needed)
6. API documentation (if applicable)

Format your response as a series of files:
=== FILENAME: path/to/file.ext ===
[file content here]
=== END FILE ===

Every file referenced by a <script src> or stylesheet <link href> must be
generated. Make the code production-ready, well-commented, and follow best
practices."""


class RequirementsDocument(Protocol):
    filename: str
    content: str


def combine_documents(documents: Iterable[RequirementsDocument]) -> str:
    """Join documents under `=== filename ===` headers."""
    return "\n\n".join(f"=== {doc.filename} ===\n{doc.content}" for doc in documents)


def _json_section(title: str, value: Any) -> str:
    return f"{title}:\n{json.dumps(value, indent=2, default=str)}"


def build_generation_prompt(
    documents: Iterable[RequirementsDocument],
    analysis: Any | None = None,
    answers: Mapping[str, Any] | None = None,
    preferences: Mapping[str, Any] | None = None,
) -> str:
    """Build the user prompt for a generation request.

    Empty analysis, answers and preferences are left out entirely.
    """
    sections = [
        "Generate a complete, production-ready application based on these "
        "requirements.",
        f"Requirements:\n{combine_documents(documents)}",
    ]
    if analysis:
        sections.append(_json_section("Analysis", analysis))
    if answers:
        sections.append(_json_section("User Answers", dict(answers)))
    if preferences:
        sections.append(_json_section("Preferences", dict(preferences)))
    sections.append(OUTPUT_FORMAT_INSTRUCTIONS)
    return "\n\n".join(sections)
