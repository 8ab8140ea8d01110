"""Language name normalization for fenced blocks, file extensions and CSS classes."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Optional

DEFAULT_LANGUAGE = "javascript"

LANGUAGE_ALIASES = {
    "js": "javascript",
    "jsx": "javascript",
    "javascript": "javascript",
    "mjs": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "typescript": "typescript",
    "css": "css",
    "scss": "css",
    "html": "html",
}

EXTENSION_LANGUAGES = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "css": "css",
    "scss": "css",
    "html": "html",
    "md": "markdown",
}


def normalize_language(tag: Optional[str]) -> str:
    """Fence tag to canonical language; an absent tag means JavaScript."""
    if not tag:
        return DEFAULT_LANGUAGE
    lowered = tag.strip().lower()
    return LANGUAGE_ALIASES.get(lowered, lowered)


def language_for_path(path: str) -> str:
    suffix = PurePosixPath(path).suffix.lstrip(".").lower()
    return EXTENSION_LANGUAGES.get(suffix, DEFAULT_LANGUAGE)


def language_from_classes(classes: list[str]) -> Optional[str]:
    """Find a known language in highlighter classes like ``language-tsx`` or ``js``."""
    for cls in classes:
        token = cls.lower()
        for prefix in ("language-", "lang-"):
            if token.startswith(prefix):
                token = token[len(prefix):]
                break
        if token in LANGUAGE_ALIASES:
            return LANGUAGE_ALIASES[token]
    return None
