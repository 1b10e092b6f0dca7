"""
Models package exports for domain, schemas, and embeddings.
"""

from yc_advisor.models.domain import (
    ConversationState,
    Message,
    Checkpoint,
    CheckpointWrite,
    SummaryRecord,
    AuthenticatedUser,
    GRAPH_START_MARKER,
)
from yc_advisor.models.schemas import (
    ChatRequest,
    ErrorResponse,
    HistoryResponse,
    SummaryResponse,
    CompanyMatch,
    ApplicationMatch,
    VectorMatch,
)
from yc_advisor.models.embeddings import get_embeddings_model, QueryCachedEmbeddings

__all__ = [
    "ConversationState",
    "Message",
    "Checkpoint",
    "CheckpointWrite",
    "SummaryRecord",
    "AuthenticatedUser",
    "GRAPH_START_MARKER",
    "ChatRequest",
    "ErrorResponse",
    "HistoryResponse",
    "SummaryResponse",
    "CompanyMatch",
    "ApplicationMatch",
    "VectorMatch",
    "get_embeddings_model",
    "QueryCachedEmbeddings",
]
