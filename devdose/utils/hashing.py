"""Content hashes used for snippet deduplication and published-row identity."""

from __future__ import annotations

import hashlib
import re

_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT_RE = re.compile(r"//.*$", re.MULTILINE)
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_code(code: str) -> str:
    """Strip block/line comments and collapse whitespace runs to one space."""
    without_blocks = _BLOCK_COMMENT_RE.sub("", code)
    without_lines = _LINE_COMMENT_RE.sub("", without_blocks)
    return _WHITESPACE_RE.sub(" ", without_lines).strip()


def snippet_hash(code: str) -> str:
    """SHA-256 of the normalized code. Two snippets differing only in comments
    or formatting share a hash."""
    return hashlib.sha256(normalize_code(code).encode("utf-8")).hexdigest()


def code_hash(code: str) -> str:
    """MD5 of the raw code, the unique key of a published post."""
    return hashlib.md5(code.encode("utf-8")).hexdigest()
