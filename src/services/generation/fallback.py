"""Guarantee an entry artifact exists once the stream has ended."""

from __future__ import annotations

import html
import logging
from enum import StrEnum

from services.generation.classification import (
    ENTRY_ARTIFACT_NAME,
    is_entry_capable,
    is_entry_name,
)
from services.generation.models import ArtifactDraft


logger = logging.getLogger(__name__)


class FallbackAction(StrEnum):
    NONE = "none"
    PROMOTED = "promoted"
    SYNTHESISED = "synthesised"


def render_listing_page(names: list[str]) -> str:
    """Minimal HTML5 page linking to every artifact name."""
    items = "\n".join(
        f'      <li><a href="{html.escape(name, quote=True)}">'
        f"{html.escape(name)}</a></li>"
        for name in names
    )
    body = f"    <ul>\n{items}\n    </ul>\n" if items else "    <ul></ul>\n"
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "  <head>\n"
        '    <meta charset="utf-8">\n'
        "    <title>Generated files</title>\n"
        "  </head>\n"
        "  <body>\n"
        "    <h1>Generated files</h1>\n"
        f"{body}"
        "  </body>\n"
        "</html>\n"
    )


def ensure_entry_artifact(
    artifacts: dict[str, ArtifactDraft], entry_name: str = ENTRY_ARTIFACT_NAME
) -> FallbackAction:
    """Make sure `artifacts` holds an entry artifact, adding one if needed.

    Mutates `artifacts` in place. Policy, in order:

    1. an artifact whose basename is the entry name (any case, any directory)
       already exists: leave the set alone;
    2. otherwise copy the first entry-capable (markup) artifact under the
       entry name;
    3. otherwise synthesise a listing page linking to every artifact.

    Never fails.
    """
    if any(is_entry_name(name, entry_name) for name in artifacts):
        return FallbackAction.NONE

    for name, draft in artifacts.items():
        if is_entry_capable(name):
            logger.info("No %s generated; promoting %s", entry_name, name)
            artifacts[entry_name] = ArtifactDraft.sealed_with(entry_name, draft.content)
            return FallbackAction.PROMOTED

    logger.info(
        "No entry-capable artifact generated; synthesising %s listing %d files",
        entry_name,
        len(artifacts),
    )
    artifacts[entry_name] = ArtifactDraft.sealed_with(
        entry_name, render_listing_page(list(artifacts))
    )
    return FallbackAction.SYNTHESISED
