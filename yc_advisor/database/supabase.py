"""
Supabase integration with fail-fast error handling.
Provides the vector similarity search over the advisor index and the
identity lookup for bearer tokens.
"""

import asyncio
from typing import Any
from supabase import Client

from yc_advisor.models.domain import AuthenticatedUser
from yc_advisor.models.schemas import VectorMatch
from yc_advisor.utils.logger import get_logger

logger = get_logger(__name__)


class DatabaseError(Exception):
    """Raised when database operations fail."""


class SupabaseVectorIndex:
    """
    Similarity search over pre-embedded YC documents.
    Wraps a Postgres function (default `match_documents`) taking the query
    vector, a match count and a JSON metadata filter.
    """

    def __init__(self, client: Client, match_function: str = "match_documents"):
        self.client = client
        self.match_function = match_function

    async def query(
        self, vector: list[float], top_k: int, filter: dict[str, Any]
    ) -> list[VectorMatch]:
        """
        Returns the top_k closest documents to `vector` that satisfy `filter`.

        Args:
            vector: Query embedding
            top_k: Maximum number of matches
            filter: Metadata equality filter, e.g. {"type": "company"}

        Returns:
            Matches ordered by decreasing similarity (empty if nothing matches)

        Raises:
            DatabaseError: If the search call fails
        """
        rpc_params = {
            "query_embedding": vector,
            "match_count": top_k,
            "filter": filter,
        }
        try:
            logger.info("vector_search_started", top_k=top_k, filter=filter)
            response = await asyncio.to_thread(
                lambda: self.client.rpc(self.match_function, rpc_params).execute()
            )
        except Exception as e:
            logger.error("vector_search_failed", exc_info=True, error=str(e))
            raise DatabaseError(f"Vector search failed: {e}") from e

        rows = response.data or []
        matches = [
            VectorMatch(
                score=row.get("similarity", row.get("score", 0.0)),
                metadata=row.get("metadata") or {},
            )
            for row in rows
        ]
        logger.info("vector_search_completed", matches=len(matches))
        return matches


class SupabaseIdentityProvider:
    """Resolves bearer tokens to users through Supabase Auth."""

    def __init__(self, client: Client):
        self.client = client

    async def get_user(self, access_token: str) -> AuthenticatedUser | None:
        """
        Looks up the user owning `access_token`.

        Returns:
            The authenticated user, or None when the token is not accepted
        """
        try:
            response = await asyncio.to_thread(self.client.auth.get_user, access_token)
        except Exception as e:
            logger.warning("token_rejected", error=str(e))
            return None

        user = getattr(response, "user", None)
        if user is None:
            return None
        return AuthenticatedUser(id=str(user.id), email=getattr(user, "email", None))
