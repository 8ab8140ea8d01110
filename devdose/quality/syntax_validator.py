"""
Per-language syntax checks for card code.

JavaScript and TypeScript are parsed with tree-sitter; any ERROR or
MISSING node is a syntax error. CSS and HTML only get structural checks.
"""

from __future__ import annotations

import re
from functools import lru_cache

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from devdose.models import ValidationResult

_CSS_RULE_RE = re.compile(r"[.#\w\s]+\s*{[\s\S]*}")
_HTML_OPEN_TAG_RE = re.compile(r"<(\w+)[^>]*>")
_HTML_CLOSE_TAG_RE = re.compile(r"</(\w+)>")
_VOID_ELEMENTS = {"img", "br", "hr", "input", "meta", "link"}

MAX_REPORTED_ERRORS = 5


@lru_cache(maxsize=None)
def _language(name: str) -> Language:
    if name == "javascript":
        return Language(tree_sitter_javascript.language())
    if name == "typescript":
        return Language(tree_sitter_typescript.language_typescript())
    if name == "tsx":
        return Language(tree_sitter_typescript.language_tsx())
    raise ValueError(f"No grammar for {name!r}")


def _syntax_errors(code: str, grammar: str) -> list[str]:
    tree = Parser(_language(grammar)).parse(code.encode("utf-8"))
    if not tree.root_node.has_error:
        return []

    errors: list[str] = []
    stack: list[Node] = [tree.root_node]
    while stack and len(errors) < MAX_REPORTED_ERRORS:
        node = stack.pop()
        line, column = node.start_point[0] + 1, node.start_point[1] + 1
        if node.is_missing:
            errors.append(f"Missing '{node.type}' at line {line}, column {column}")
        elif node.type == "ERROR":
            errors.append(f"Unexpected syntax at line {line}, column {column}")
        elif node.has_error:
            stack.extend(reversed(node.children))
    return errors or ["Syntax error"]


class SyntaxValidator:
    """Dispatches on language; unknown languages are always valid."""

    def validate(self, code: str, language: str) -> ValidationResult:
        lang = language.lower()
        if lang in ("javascript", "jsx"):
            return self.validate_javascript(code)
        if lang in ("typescript", "tsx"):
            return self.validate_typescript(code)
        if lang in ("css", "scss"):
            return self.validate_css(code)
        if lang == "html":
            return self.validate_html(code)
        return ValidationResult(is_valid=True)

    def validate_javascript(self, code: str) -> ValidationResult:
        errors = _syntax_errors(code, "javascript")
        return ValidationResult(is_valid=not errors, errors=errors)

    def validate_typescript(self, code: str) -> ValidationResult:
        """Accept the snippet if it parses as either TypeScript or TSX."""
        errors = _syntax_errors(code, "typescript")
        if errors and not _syntax_errors(code, "tsx"):
            errors = []
        return ValidationResult(is_valid=not errors, errors=errors)

    def validate_css(self, code: str) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []
        if code.count("{") != code.count("}"):
            errors.append("Unbalanced braces in CSS")
        if not _CSS_RULE_RE.search(code):
            warnings.append("CSS may not follow standard syntax")
        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    def validate_html(self, code: str) -> ValidationResult:
        opened = [
            name for name in _HTML_OPEN_TAG_RE.findall(code) if name.lower() not in _VOID_ELEMENTS
        ]
        closed = _HTML_CLOSE_TAG_RE.findall(code)
        warnings = ["Potentially unbalanced HTML tags"] if len(opened) != len(closed) else []
        return ValidationResult(is_valid=True, warnings=warnings)
