"""
Retrieval service: query classification, similarity search, and
normalization of index matches into prompt-ready records.
"""

import asyncio
import json
from typing import Any, Literal
from langchain_core.embeddings import Embeddings

from yc_advisor.database.supabase import SupabaseVectorIndex
from yc_advisor.models.schemas import ApplicationMatch, CompanyMatch, VectorMatch
from yc_advisor.utils.logger import get_logger

logger = get_logger(__name__)

QueryType = Literal["application", "company"]

APPLICATION_TYPE: QueryType = "application"
COMPANY_TYPE: QueryType = "company"
MAX_QA_PAIRS = 3


def classify_query(query: str) -> QueryType:
    """Queries mentioning "application" search past applications, others companies."""
    return APPLICATION_TYPE if "application" in query.lower() else COMPANY_TYPE


def _text(value: Any) -> str:
    return str(value) if value else "N/A"


def format_industries(industries: Any) -> str:
    """
    Renders industry slugs as a readable list.
    ["b2b", "fintech-payments"] -> "B2b, Fintech Payments"
    """
    if not isinstance(industries, list):
        return _text(industries)

    names = ",".join(str(item) for item in industries).split(",")
    return ", ".join(
        " ".join(word[:1].upper() + word[1:] for word in name.strip().split("-"))
        for name in names
    )


def format_founders(founders: Any) -> str:
    if isinstance(founders, list):
        return ", ".join(str(founder) for founder in founders)
    return _text(founders)


def format_score(score: float) -> str:
    """Similarity in [0, 1] as a percentage with two decimals."""
    return f"{score * 100:.2f}"


def normalize_match(
    match: VectorMatch, query_type: QueryType
) -> CompanyMatch | ApplicationMatch:
    """
    Flattens the metadata of one match into the display record of its type.

    Args:
        match: Raw similarity match
        query_type: Classified query type the search was filtered on

    Returns:
        CompanyMatch or ApplicationMatch with a percentage score
    """
    metadata = match.metadata
    score = format_score(match.score)

    if query_type == COMPANY_TYPE:
        return CompanyMatch(
            name=_text(metadata.get("name")),
            description=_text(metadata.get("description")),
            batch=_text(metadata.get("batch")),
            founded_date=_text(metadata.get("founded_date")),
            industries=format_industries(metadata.get("industries")),
            founders=format_founders(metadata.get("founders")),
            score=score,
        )

    qa_pairs = metadata.get("qa_pairs") or []
    return ApplicationMatch(
        company_name=_text(metadata.get("company_name")),
        description=_text(metadata.get("description")),
        batch=_text(metadata.get("batch")),
        status=_text(metadata.get("status")),
        qa_pairs=list(qa_pairs)[:MAX_QA_PAIRS],
        score=score,
    )


def serialize_matches(
    records: list[CompanyMatch | ApplicationMatch], indent: int | None = None
) -> str:
    """JSON text of the normalized records, as embedded in prompt and state."""
    return json.dumps(
        [record.model_dump() for record in records], indent=indent, ensure_ascii=False
    )


class RetrievalService:
    """
    Embeds a query and searches the advisor index, scoped by query type.
    """

    def __init__(
        self,
        index: SupabaseVectorIndex,
        embeddings: Embeddings,
        top_k: int = 2,
    ):
        """
        Initialize retrieval service.

        Args:
            index: Vector index exposing query(vector, top_k, filter)
            embeddings: Embeddings model matching the indexed vectors
            top_k: Number of matches requested per search
        """
        self.index = index
        self.embeddings = embeddings
        self.top_k = top_k

    async def search(self, query: str, query_type: QueryType) -> list[VectorMatch]:
        """
        Returns the closest documents of `query_type` to `query`.

        Raises:
            Exception: Embedding and database errors are propagated
        """
        logger.info("search_started", query=query, query_type=query_type)
        vector = await asyncio.to_thread(self.embeddings.embed_query, query)
        matches = await self.index.query(
            vector, top_k=self.top_k, filter={"type": query_type}
        )
        logger.info("search_completed", query_type=query_type, matches=len(matches))
        return matches
