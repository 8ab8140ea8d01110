from devdose.discovery.curated_sources import (
    CURATED_SOURCES,
    curated_sources,
    high_priority_sources,
    sources_by_tag,
)
from devdose.discovery.github_client import GitHubApiError, GitHubClient, is_transient_github_error
from devdose.discovery.github_discovery import GitHubDiscovery, calculate_priority
from devdose.discovery.manual_sources import (
    SourceImportError,
    add_source,
    import_sources,
    load_source_file,
)
from devdose.discovery.service import DiscoveryService, discovery_stats

__all__ = [
    "CURATED_SOURCES",
    "DiscoveryService",
    "GitHubApiError",
    "GitHubClient",
    "GitHubDiscovery",
    "SourceImportError",
    "add_source",
    "calculate_priority",
    "curated_sources",
    "discovery_stats",
    "high_priority_sources",
    "import_sources",
    "is_transient_github_error",
    "load_source_file",
    "sources_by_tag",
]
