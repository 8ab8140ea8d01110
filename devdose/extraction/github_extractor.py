"""Code snippet extraction from a repository's README and examples directory."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional

import requests

from devdose.config.settings import GitHubSettings, get_settings
from devdose.discovery.github_client import (
    GitHubApiError,
    GitHubClient,
    decode_content,
    is_transient_github_error,
)
from devdose.extraction.languages import language_for_path, normalize_language
from devdose.models import CodeSnippet, ExtractionConfig, GitHubSource, LineRange, SnippetMetadata
from devdose.utils.hashing import snippet_hash
from devdose.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)

FENCED_BLOCK_RE = re.compile(r"```(\w+)?\n(.*?)```", re.DOTALL)

_LOOKUP_ERRORS = (GitHubApiError, requests.RequestException)


def extract_fenced_blocks(
    markdown: str,
    metadata: SnippetMetadata,
    config: ExtractionConfig,
) -> list[CodeSnippet]:
    """Every fenced block of an allowed language whose line count is in bounds."""
    snippets = []
    for match in FENCED_BLOCK_RE.finditer(markdown):
        language = normalize_language(match.group(1))
        code = match.group(2).strip()
        line_count = len(code.split("\n"))
        if not code or not config.accepts(language, line_count):
            continue
        snippets.append(
            CodeSnippet(
                code=code,
                language=language,
                metadata=metadata.model_copy(
                    update={"line_numbers": LineRange(start=1, end=line_count)}
                ),
                hash=snippet_hash(code),
            )
        )
    return snippets


class GitHubExtractor:
    """Pulls snippets out of one repository at a time."""

    def __init__(
        self,
        client: Optional[GitHubClient] = None,
        settings: Optional[GitHubSettings] = None,
        retry_policy: Optional[RetryPolicy] = None,
        max_example_files: int = 5,
    ) -> None:
        self._settings = settings or get_settings().github
        self._client = client or GitHubClient(self._settings)
        self._retry = retry_policy or RetryPolicy(
            max_attempts=self._settings.retry_attempts,
            base_delay=self._settings.retry_base_delay,
            max_delay=self._settings.max_backoff,
            is_retryable=is_transient_github_error,
        )
        self._max_example_files = max_example_files

    async def extract_from_repo(
        self,
        source: GitHubSource,
        config: ExtractionConfig,
    ) -> list[CodeSnippet]:
        """
        README blocks followed by example files. Lookup failures yield fewer
        snippets; any other failure drops the repository with a warning.
        """
        try:
            readme = await self._readme_snippets(source, config)
            examples = await self._example_snippets(source, config)
        except Exception as exc:
            logger.warning("Skipping repository %s: %s", source.name, exc)
            return []

        snippets = [*readme, *examples]
        logger.info(
            "Extracted %d snippets from %s (%d README, %d examples)",
            len(snippets),
            source.name,
            len(readme),
            len(examples),
        )
        return snippets

    async def _readme_snippets(
        self,
        source: GitHubSource,
        config: ExtractionConfig,
    ) -> list[CodeSnippet]:
        try:
            text = await self._fetch(self._client.get_readme_text, source.owner, source.repo)
        except _LOOKUP_ERRORS as exc:
            logger.warning("No README for %s: %s", source.name, exc)
            return []

        metadata = SnippetMetadata(
            source_name=f"{source.owner}/{source.repo}",
            source_url=f"https://github.com/{source.owner}/{source.repo}",
            source_type="github",
            file_path="README.md",
        )
        return extract_fenced_blocks(text, metadata, config)

    async def _example_snippets(
        self,
        source: GitHubSource,
        config: ExtractionConfig,
    ) -> list[CodeSnippet]:
        try:
            listing = await self._fetch(
                self._client.get_content, source.owner, source.repo, "examples"
            )
        except _LOOKUP_ERRORS:
            return []
        if not isinstance(listing, list):
            return []

        files = [entry for entry in listing if entry.get("type") == "file"]
        snippets = []
        for entry in files[: self._max_example_files]:
            snippet = await self._file_snippet(source, entry["path"], config)
            if snippet is not None:
                snippets.append(snippet)
        return snippets

    async def _file_snippet(
        self,
        source: GitHubSource,
        path: str,
        config: ExtractionConfig,
    ) -> Optional[CodeSnippet]:
        language = language_for_path(path)
        if language not in config.languages:
            return None

        try:
            payload = await self._fetch(self._client.get_content, source.owner, source.repo, path)
        except _LOOKUP_ERRORS as exc:
            logger.warning("Could not read %s/%s: %s", source.name, path, exc)
            return None
        if not isinstance(payload, dict) or "content" not in payload:
            return None

        code = decode_content(payload).rstrip()
        line_count = len(code.split("\n"))
        if not code or not config.accepts(language, line_count):
            return None

        return CodeSnippet(
            code=code,
            language=language,
            metadata=SnippetMetadata(
                source_name=f"{source.owner}/{source.repo}",
                source_url=f"https://github.com/{source.owner}/{source.repo}/blob/main/{path}",
                source_type="github",
                file_path=path,
                line_numbers=LineRange(start=1, end=line_count),
            ),
            hash=snippet_hash(code),
        )

    async def _fetch(self, func, *args):
        return await self._retry.run(
            lambda: asyncio.to_thread(func, *args),
            description=f"{func.__name__}{args}",
        )
