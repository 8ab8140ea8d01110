"""Tests for README and example-file extraction."""

from __future__ import annotations

import asyncio
import base64

from devdose.config.settings import GitHubSettings
from devdose.discovery.github_client import GitHubApiError, decode_content, is_transient_github_error
from devdose.extraction.github_extractor import GitHubExtractor, extract_fenced_blocks
from devdose.models import ExtractionConfig, SnippetMetadata
from devdose.utils.retry import RetryPolicy
from tests.conftest import make_github_source, no_sleep

README = """# Widgets

```jsx
const Button = () => (
  <button>Click</button>
);
```

Short one:

```js
x();
```

```python
def f():
    return 1
    pass
```

```ts
type Point = { x: number; y: number };
const origin: Point = { x: 0, y: 0 };
console.log(origin);
```
"""

EXAMPLE_FILE = "export function add(a, b) {\n  return a + b;\n}\n"


def _encoded(text: str) -> dict:
    return {"content": base64.b64encode(text.encode()).decode(), "encoding": "base64"}


class _FakeGitHub:
    def __init__(self, readme=README, examples=None, failing_readme=False):
        self.readme = readme
        self.examples = examples if examples is not None else {"examples/add.js": EXAMPLE_FILE}
        self.failing_readme = failing_readme

    def get_readme_text(self, owner, repo):
        if self.failing_readme:
            raise GitHubApiError(404, f"{owner}/{repo}/readme")
        return self.readme

    def get_content(self, owner, repo, path):
        if path == "examples":
            if not self.examples:
                raise GitHubApiError(404, path)
            return [{"type": "file", "path": p} for p in self.examples] + [
                {"type": "dir", "path": "examples/nested"}
            ]
        return _encoded(self.examples[path])


def _extractor(client) -> GitHubExtractor:
    return GitHubExtractor(
        client=client,
        settings=GitHubSettings(),
        retry_policy=RetryPolicy(is_retryable=is_transient_github_error, sleep_func=no_sleep),
        max_example_files=5,
    )


def _metadata() -> SnippetMetadata:
    return SnippetMetadata(source_name="acme/widgets", source_url="https://github.com/acme/widgets",
                           source_type="github", file_path="README.md")


def test_fenced_blocks_respect_language_and_line_bounds():
    snippets = extract_fenced_blocks(README, _metadata(), ExtractionConfig())

    assert [s.language for s in snippets] == ["javascript", "typescript"]
    assert snippets[0].code.startswith("const Button")
    assert snippets[0].metadata.line_numbers.end == 3


def test_readme_and_examples_are_extracted():
    source = make_github_source("acme", "widgets")
    snippets = asyncio.run(_extractor(_FakeGitHub()).extract_from_repo(source, ExtractionConfig()))

    assert len(snippets) == 3
    example = snippets[-1]
    assert example.code == EXAMPLE_FILE.rstrip()
    assert example.metadata.file_path == "examples/add.js"
    assert example.metadata.source_url == "https://github.com/acme/widgets/blob/main/examples/add.js"
    assert snippets[0].metadata.source_url == "https://github.com/acme/widgets"


def test_missing_readme_still_reads_examples():
    source = make_github_source("acme", "widgets")
    client = _FakeGitHub(failing_readme=True)
    snippets = asyncio.run(_extractor(client).extract_from_repo(source, ExtractionConfig()))
    assert [s.metadata.file_path for s in snippets] == ["examples/add.js"]


def test_example_files_outside_allowed_languages_are_skipped():
    source = make_github_source("acme", "widgets")
    client = _FakeGitHub(readme="", examples={"examples/notes.md": "a\nb\nc\n"})
    snippets = asyncio.run(_extractor(client).extract_from_repo(source, ExtractionConfig()))
    assert snippets == []


class _CorruptReadmeGitHub(_FakeGitHub):
    def get_readme_text(self, owner, repo):
        return decode_content({"content": "abc", "encoding": "base64"})


def test_undecodable_readme_drops_only_that_repository():
    source = make_github_source("acme", "broken")
    snippets = asyncio.run(
        _extractor(_CorruptReadmeGitHub()).extract_from_repo(source, ExtractionConfig())
    )
    assert snippets == []


def test_malformed_listing_entry_drops_the_repository():
    class _NoPathListing(_FakeGitHub):
        def get_content(self, owner, repo, path):
            return [{"type": "file"}]

    source = make_github_source("acme", "widgets")
    snippets = asyncio.run(_extractor(_NoPathListing()).extract_from_repo(source, ExtractionConfig()))
    assert snippets == []
