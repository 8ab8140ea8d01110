"""
Sources added by hand, outside of topic search.

Imported entries are appended to the discovery checkpoint so the next
extraction run picks them up. An entry needs ``type``, ``name`` and
``url``; GitHub entries take their owner and repository from the URL.
Entries whose URL is already in the checkpoint are skipped.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from devdose.discovery.service import discovery_stats
from devdose.models import CatalogSource, DiscoveryResult, GitHubSource, Source
from devdose.storage.checkpoint_store import CheckpointStore

logger = logging.getLogger(__name__)

SOURCE_TYPES = ("github", "docs", "blog", "awesome")
DEFAULT_PRIORITY = 5

GITHUB_URL_RE = re.compile(r"github\.com/([^/\s]+)/([^/\s?#]+)")


class SourceImportError(ValueError):
    """An entry cannot become a source, or duplicates an existing one."""


@dataclass
class ImportSummary:
    imported: int
    skipped: int
    total: int


def parse_github_url(url: str) -> tuple[str, str]:
    """``(owner, repo)`` from a repository URL; a trailing ``.git`` is dropped."""
    match = GITHUB_URL_RE.search(url)
    if match is None:
        raise SourceImportError(f"Not a GitHub repository URL: {url}")
    return match.group(1), match.group(2).removesuffix(".git")


def _tags(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(tag).strip() for tag in value if str(tag).strip()]


def build_source(entry: dict[str, Any]) -> Source:
    source_type = entry.get("type")
    name = entry.get("name")
    url = entry.get("url")
    if not (source_type and name and url):
        raise SourceImportError(f"Missing type/name/url: {entry!r}")
    if source_type not in SOURCE_TYPES:
        raise SourceImportError(f"Unknown source type {source_type!r} for {name}")

    common = {
        "name": name,
        "url": url,
        "tags": _tags(entry.get("tags")),
        "priority": entry.get("priority") or DEFAULT_PRIORITY,
    }
    try:
        if source_type == "github":
            owner, repo = parse_github_url(url)
            return GitHubSource(
                owner=owner,
                repo=repo,
                stars=entry.get("stars"),
                forks=entry.get("forks"),
                language=entry.get("language"),
                has_examples=bool(entry.get("has_examples", False)),
                has_good_docs=bool(entry.get("has_good_docs", True)),
                **common,
            )
        return CatalogSource(type=source_type, **common)
    except ValidationError as exc:
        raise SourceImportError(f"Invalid source {name}: {exc}") from exc


def merge_sources(
    existing: Optional[DiscoveryResult],
    entries: Iterable[dict[str, Any]],
) -> tuple[DiscoveryResult, ImportSummary]:
    """Append valid, not-yet-known entries to ``existing`` and recount the stats."""
    sources = list(existing.sources) if existing is not None else []
    known_urls = {source.url for source in sources}
    imported = skipped = 0

    for entry in entries:
        try:
            source = build_source(entry)
        except SourceImportError as exc:
            logger.warning("Skipping entry: %s", exc)
            skipped += 1
            continue
        if source.url in known_urls:
            logger.warning("Skipping duplicate source %s (%s)", source.name, source.url)
            skipped += 1
            continue
        known_urls.add(source.url)
        sources.append(source)
        imported += 1
        logger.info("Imported %s source %s", source.type, source.name)

    result = DiscoveryResult(sources=sources, stats=discovery_stats(sources))
    return result, ImportSummary(imported=imported, skipped=skipped, total=len(sources))


def import_sources(
    checkpoints: CheckpointStore,
    entries: Iterable[dict[str, Any]],
) -> ImportSummary:
    """Merge ``entries`` into the discovery checkpoint, creating it if needed."""
    existing = checkpoints.load("discovery") if checkpoints.exists("discovery") else None
    result, summary = merge_sources(existing, entries)
    checkpoints.save("discovery", result)
    logger.info(
        "Source import: %d imported, %d skipped, %d total",
        summary.imported,
        summary.skipped,
        summary.total,
    )
    return summary


def add_source(checkpoints: CheckpointStore, entry: dict[str, Any]) -> Source:
    """Add one source; raises SourceImportError if it is invalid or already known."""
    source = build_source(entry)
    summary = import_sources(checkpoints, [entry])
    if not summary.imported:
        raise SourceImportError(f"Source already discovered: {source.url}")
    return source


def load_source_file(path: Path) -> list[dict[str, Any]]:
    """Entries from a JSON file holding an array of source objects."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SourceImportError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise SourceImportError(f"{path} must hold a JSON array of source objects")
    return payload
