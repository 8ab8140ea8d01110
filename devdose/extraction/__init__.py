from devdose.extraction.deduplicator import Deduplicator
from devdose.extraction.docs_scraper import DOC_PAGES, DocPage, DocsScraper
from devdose.extraction.github_extractor import GitHubExtractor, extract_fenced_blocks
from devdose.extraction.service import ExtractionService

__all__ = [
    "DOC_PAGES",
    "Deduplicator",
    "DocPage",
    "DocsScraper",
    "ExtractionService",
    "GitHubExtractor",
    "extract_fenced_blocks",
]
