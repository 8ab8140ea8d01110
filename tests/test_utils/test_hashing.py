"""Tests for snippet and post hashes."""

from __future__ import annotations

from devdose.utils.hashing import code_hash, normalize_code, snippet_hash


def test_snippet_hash_is_deterministic():
    code = "const a = 1;\nconsole.log(a);"
    assert snippet_hash(code) == snippet_hash(code)
    assert len(snippet_hash(code)) == 64


def test_comments_and_whitespace_do_not_change_snippet_hash():
    plain = "const a = 1;\nconsole.log(a);"
    decorated = "// setup\nconst a   = 1; /* the value */\n\n  console.log(a); // print"
    assert snippet_hash(plain) != snippet_hash("const b = 1;\nconsole.log(b);")
    assert normalize_code(decorated) == "const a = 1; console.log(a);"
    assert snippet_hash(decorated) == snippet_hash("const a = 1; console.log(a);")


def test_multiline_block_comment_is_removed():
    code = "/*\n * Adds numbers\n */\nfunction add(a, b) { return a + b; }"
    assert normalize_code(code) == "function add(a, b) { return a + b; }"


def test_code_hash_is_md5_of_raw_code():
    assert code_hash("a") == "0cc175b9c0f1b6a831c399e269772661"
    assert code_hash("a ") != code_hash("a")
