"""
Services package exports for business logic layer.
"""

from yc_advisor.services.llm_service import LLMService, create_llm, LLMError, LLMTimeoutError
from yc_advisor.services.retrieval_service import RetrievalService, classify_query
from yc_advisor.services.responder import (
    AdvisorServices,
    RetrievalAugmentedResponder,
    ResponderResult,
)
from yc_advisor.services.session_registry import SessionRegistry
from yc_advisor.services.summary_service import (
    SummaryService,
    SummaryProjection,
    project_summary,
)

__all__ = [
    "LLMService",
    "create_llm",
    "LLMError",
    "LLMTimeoutError",
    "RetrievalService",
    "classify_query",
    "AdvisorServices",
    "RetrievalAugmentedResponder",
    "ResponderResult",
    "SessionRegistry",
    "SummaryService",
    "SummaryProjection",
    "project_summary",
]
