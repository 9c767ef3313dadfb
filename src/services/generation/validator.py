"""Post-extraction validation of a generated artifact set.

A fixed, ordered pipeline of checks runs against the sealed artifacts; the
first violation stops the pipeline and is returned as a single
`ValidationFinding`:

1. entry presence      -> missing-entry
2. script syntax       -> syntax-error
3. markup structure    -> structural-error
4. local references    -> missing-reference

Syntax checks only parse; nothing generated is ever executed.
"""

from __future__ import annotations

import ast
import logging
import posixpath
from collections.abc import Callable, Mapping
from urllib.parse import unquote, urlsplit

import tree_sitter_javascript
from bs4 import BeautifulSoup, Doctype
from tree_sitter import Language, Node, Parser

from services.generation.classification import (
    ENTRY_ARTIFACT_NAME,
    ArtifactKind,
    ScriptGrammar,
    classify,
    is_entry_name,
    script_grammar,
)
from services.generation.models import ArtifactDraft, FindingKind, ValidationFinding


logger = logging.getLogger(__name__)

JS_LANGUAGE = Language(tree_sitter_javascript.language())

# Template placeholders are resolved by the generated app, not by us
_TEMPLATE_TOKENS = ("{{", "{%", "${", "<%")

Stage = Callable[[Mapping[str, ArtifactDraft], str], ValidationFinding | None]


# --------------------------- syntax checkers ---------------------------------


def _first_error_node(root: Node) -> Node | None:
    """Return the first ERROR or MISSING node in document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return root if root.has_error else None


def javascript_syntax_error(source: str) -> str | None:
    """Return a description of the first JavaScript syntax error, or None."""
    tree = Parser(JS_LANGUAGE).parse(source.encode("utf-8"))
    node = _first_error_node(tree.root_node)
    if node is None:
        return None
    row, column = node.start_point[0] + 1, node.start_point[1] + 1
    if node.is_missing:
        return f"missing {node.type!r} at line {row}, column {column}"
    return f"unexpected syntax at line {row}, column {column}"


def python_syntax_error(source: str, filename: str = "<generated>") -> str | None:
    """Return a description of the first Python syntax error, or None."""
    try:
        ast.parse(source, filename=filename)
    except SyntaxError as e:
        return f"{e.msg} at line {e.lineno}"
    except ValueError as e:  # e.g. null bytes in source
        return str(e)
    return None


def script_syntax_error(name: str, source: str) -> str | None:
    grammar = script_grammar(name)
    if grammar is ScriptGrammar.JAVASCRIPT:
        return javascript_syntax_error(source)
    if grammar is ScriptGrammar.PYTHON:
        return python_syntax_error(source, filename=name)
    return None


# --------------------------- markup helpers ----------------------------------


def has_document_root(soup: BeautifulSoup) -> bool:
    """True when the document declares an HTML doctype or an <html> element."""
    for element in soup.contents:
        if isinstance(element, Doctype) and str(element).strip().lower().startswith(
            "html"
        ):
            return True
    return soup.find("html") is not None


def declared_references(soup: BeautifulSoup) -> list[str]:
    """Script sources and stylesheet hrefs, in document order."""
    refs: list[str] = []
    for tag in soup.find_all(["script", "link"]):
        if tag.name == "script":
            src = tag.get("src")
            if src:
                refs.append(str(src))
            continue
        rel = tag.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        href = tag.get("href")
        if href and "stylesheet" in {r.lower() for r in rel}:
            refs.append(str(href))
    return refs


def local_reference_path(ref: str) -> str | None:
    """Path part of a same-origin reference, or None for anything external."""
    ref = ref.strip()
    if not ref or ref.startswith(("#", "//")):
        return None
    if any(token in ref for token in _TEMPLATE_TOKENS):
        return None
    parts = urlsplit(ref)
    if parts.scheme or parts.netloc:
        return None
    path = unquote(parts.path)
    return path or None


def reference_resolves(ref_path: str, markup_name: str, names: list[str]) -> bool:
    """Match a reference by exact name, relative path, or path suffix."""
    if ref_path.startswith("/"):
        relative = posixpath.normpath(ref_path.lstrip("/"))
    else:
        relative = posixpath.normpath(
            posixpath.join(posixpath.dirname(markup_name), ref_path)
        )
    bare = posixpath.normpath(ref_path.lstrip("/"))
    while bare.startswith("../"):
        bare = bare[3:]
    for name in names:
        if name in (ref_path, relative, bare):
            return True
        if name.endswith("/" + bare):
            return True
    return False


# ------------------------------ stages ---------------------------------------


def check_entry_presence(
    artifacts: Mapping[str, ArtifactDraft], entry_name: str
) -> ValidationFinding | None:
    if any(is_entry_name(name, entry_name) for name in artifacts):
        return None
    return ValidationFinding(
        kind=FindingKind.MISSING_ENTRY,
        artifact_name=entry_name,
        detail=f"No {entry_name} entry file was generated",
    )


def check_script_syntax(
    artifacts: Mapping[str, ArtifactDraft], entry_name: str
) -> ValidationFinding | None:
    for name, draft in artifacts.items():
        if classify(name) is not ArtifactKind.SCRIPT:
            continue
        error = script_syntax_error(name, draft.content)
        if error is not None:
            return ValidationFinding(
                kind=FindingKind.SYNTAX_ERROR,
                artifact_name=name,
                detail=f"Syntax error in {name}: {error}",
            )
    return None


def check_markup_structure(
    artifacts: Mapping[str, ArtifactDraft], entry_name: str
) -> ValidationFinding | None:
    for name, draft in artifacts.items():
        if classify(name) is not ArtifactKind.MARKUP:
            continue
        if not has_document_root(BeautifulSoup(draft.content, "html.parser")):
            return ValidationFinding(
                kind=FindingKind.STRUCTURAL_ERROR,
                artifact_name=name,
                detail=(
                    f"{name} has no <!DOCTYPE html> declaration or <html> "
                    "root element"
                ),
            )
    return None


def check_references(
    artifacts: Mapping[str, ArtifactDraft], entry_name: str
) -> ValidationFinding | None:
    names = list(artifacts)
    for name, draft in artifacts.items():
        if classify(name) is not ArtifactKind.MARKUP:
            continue
        soup = BeautifulSoup(draft.content, "html.parser")
        for ref in declared_references(soup):
            ref_path = local_reference_path(ref)
            if ref_path is None:
                continue
            if not reference_resolves(ref_path, name, names):
                return ValidationFinding(
                    kind=FindingKind.MISSING_REFERENCE,
                    artifact_name=name,
                    detail=f"{name} references {ref} but no such file was generated",
                )
    return None


PIPELINE: tuple[Stage, ...] = (
    check_entry_presence,
    check_script_syntax,
    check_markup_structure,
    check_references,
)


class ArtifactValidator:
    """Run the validation pipeline and report the first finding."""

    def __init__(
        self,
        entry_name: str = ENTRY_ARTIFACT_NAME,
        stages: tuple[Stage, ...] = PIPELINE,
    ) -> None:
        self.entry_name = entry_name
        self.stages = stages

    def validate(
        self, artifacts: Mapping[str, ArtifactDraft]
    ) -> ValidationFinding | None:
        for stage in self.stages:
            finding = stage(artifacts, self.entry_name)
            if finding is not None:
                logger.info(
                    "Validation failed at %s: %s (%s)",
                    stage.__name__,
                    finding.kind,
                    finding.artifact_name,
                )
                return finding
        return None
