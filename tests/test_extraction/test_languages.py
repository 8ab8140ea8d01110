"""Tests for language normalization."""

from __future__ import annotations

from devdose.extraction.languages import language_for_path, language_from_classes, normalize_language


def test_fence_tags_are_normalized():
    assert normalize_language("JSX") == "javascript"
    assert normalize_language("tsx") == "typescript"
    assert normalize_language(None) == "javascript"
    assert normalize_language("python") == "python"


def test_file_extensions():
    assert language_for_path("examples/app.ts") == "typescript"
    assert language_for_path("examples/styles.SCSS") == "css"
    assert language_for_path("examples/notes.md") == "markdown"


def test_highlighter_classes():
    assert language_from_classes(["hljs", "language-tsx"]) == "typescript"
    assert language_from_classes(["lang-css"]) == "css"
    assert language_from_classes(["highlight"]) is None
