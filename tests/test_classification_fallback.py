"""Tests for artifact classification and the entry fallback policy."""

import pytest
from bs4 import BeautifulSoup

from services.generation.classification import (
    ArtifactKind,
    ScriptGrammar,
    classify,
    file_type,
    is_entry_name,
    script_grammar,
)
from services.generation.fallback import (
    FallbackAction,
    ensure_entry_artifact,
    render_listing_page,
)
from services.generation.models import ArtifactDraft


def _artifacts(named: dict[str, str]) -> dict[str, ArtifactDraft]:
    return {name: ArtifactDraft.sealed_with(name, text) for name, text in named.items()}


@pytest.mark.parametrize(
    "name,kind",
    [
        ("app.js", ArtifactKind.SCRIPT),
        ("lib/util.MJS", ArtifactKind.SCRIPT),
        ("server.py", ArtifactKind.SCRIPT),
        ("index.html", ArtifactKind.MARKUP),
        ("about.HTM", ArtifactKind.MARKUP),
        ("styles.css", ArtifactKind.OTHER),
        ("Dockerfile", ArtifactKind.OTHER),
    ],
)
def test_classify(name: str, kind: ArtifactKind):
    assert classify(name) is kind


def test_file_type_and_grammar():
    assert file_type("src/App.JS") == "js"
    assert file_type("Makefile") == ""
    assert file_type(".env.example") == "example"
    assert script_grammar("a.cjs") is ScriptGrammar.JAVASCRIPT
    assert script_grammar("main.py") is ScriptGrammar.PYTHON
    assert script_grammar("README.md") is None


def test_entry_name_matches_basename_case_insensitively():
    assert is_entry_name("index.html")
    assert is_entry_name("public/INDEX.HTML")
    assert not is_entry_name("index.htm")
    assert not is_entry_name("myindex.html")


def test_existing_entry_is_left_alone():
    artifacts = _artifacts(
        {"index.html": "<!DOCTYPE html><html></html>", "app.js": "1;"}
    )
    before = dict(artifacts)
    assert ensure_entry_artifact(artifacts) is FallbackAction.NONE
    assert artifacts == before


def test_entry_in_subdirectory_counts():
    artifacts = _artifacts({"public/index.html": "<html></html>"})
    assert ensure_entry_artifact(artifacts) is FallbackAction.NONE
    assert "index.html" not in artifacts


def test_first_markup_artifact_is_promoted():
    artifacts = _artifacts(
        {
            "app.js": "1;",
            "home.html": "<html>home</html>",
            "about.html": "<html>about</html>",
        }
    )
    assert ensure_entry_artifact(artifacts) is FallbackAction.PROMOTED
    assert artifacts["index.html"].content == "<html>home</html>"
    assert artifacts["index.html"].sealed
    # The original stays under its own name as well
    assert "home.html" in artifacts


def test_listing_page_is_synthesised_without_markup():
    artifacts = _artifacts({"app.js": "1;", "styles.css": "body {}"})
    assert ensure_entry_artifact(artifacts) is FallbackAction.SYNTHESISED

    page = artifacts["index.html"].content
    assert page.startswith("<!DOCTYPE html>")
    soup = BeautifulSoup(page, "html.parser")
    hrefs = [a["href"] for a in soup.find_all("a")]
    assert hrefs == ["app.js", "styles.css"]


def test_listing_page_escapes_names():
    page = render_listing_page(['a"b<c>.txt'])
    assert 'href="a&quot;b&lt;c&gt;.txt"' in page


def test_listing_page_for_empty_set():
    artifacts: dict[str, ArtifactDraft] = {}
    assert ensure_entry_artifact(artifacts) is FallbackAction.SYNTHESISED
    assert list(artifacts) == ["index.html"]
