"""AI synthesis, chart analysis and document chat."""

from .client import (
    AIServiceError,
    AIServiceNotConfiguredError,
    AnalysisFailedError,
    CompletionClient,
    CreditsExhaustedError,
    RateLimitExceededError,
)
from .document_chat import ChatDocument, chat_with_documents
from .synthesizer import analyze_charts, synthesize_results

__all__ = [
    "AIServiceError",
    "AIServiceNotConfiguredError",
    "AnalysisFailedError",
    "CompletionClient",
    "CreditsExhaustedError",
    "RateLimitExceededError",
    "ChatDocument",
    "chat_with_documents",
    "analyze_charts",
    "synthesize_results",
]
