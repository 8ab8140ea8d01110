from devdose.processing.llm_client import (
    CompletionClient,
    CompletionError,
    GeminiCompletionClient,
    OllamaCompletionClient,
    create_completion_client,
)
from devdose.processing.reports import (
    PostNotFoundError,
    ReportOutcome,
    VerificationFailedError,
    handle_report,
)
from devdose.processing.response_parser import InvalidOutputError, parse_processing_output
from devdose.processing.service import ProcessingService, VerificationOutcome

__all__ = [
    "CompletionClient",
    "CompletionError",
    "GeminiCompletionClient",
    "InvalidOutputError",
    "OllamaCompletionClient",
    "PostNotFoundError",
    "ProcessingService",
    "ReportOutcome",
    "VerificationFailedError",
    "VerificationOutcome",
    "create_completion_client",
    "handle_report",
    "parse_processing_output",
]
