from devdose.enrichment.enricher import enrich_post, extract_tags, prerequisites_for, reading_time_seconds
from devdose.enrichment.related import related_indices
from devdose.enrichment.service import EnrichmentService

__all__ = [
    "EnrichmentService",
    "enrich_post",
    "extract_tags",
    "prerequisites_for",
    "reading_time_seconds",
    "related_indices",
]
