"""
Conversation summary stores keyed by user id.
Only the most recent summary of a user is ever read.
"""

import asyncio
from collections import defaultdict
from datetime import datetime, timezone
from typing import Protocol
from supabase import Client

from yc_advisor.database.supabase import DatabaseError
from yc_advisor.models.domain import SummaryRecord
from yc_advisor.utils.logger import get_logger

logger = get_logger(__name__)


class SummaryStore(Protocol):
    async def latest(self, user_id: str) -> SummaryRecord | None: ...

    async def add(self, user_id: str, summary: str) -> None: ...


class InMemorySummaryStore:
    def __init__(self):
        self._summaries: dict[str, list[SummaryRecord]] = defaultdict(list)

    async def latest(self, user_id: str) -> SummaryRecord | None:
        records = self._summaries.get(user_id)
        return records[-1] if records else None

    async def add(self, user_id: str, summary: str) -> None:
        self._summaries[user_id].append(
            SummaryRecord(summary=summary, created_at=datetime.now(timezone.utc))
        )


class SupabaseSummaryStore:
    """Summaries in the `chat_summaries(user_id, summary, created_at)` table."""

    def __init__(self, client: Client, table: str = "chat_summaries"):
        self.client = client
        self.table = table

    async def latest(self, user_id: str) -> SummaryRecord | None:
        """
        Fetches the newest summary of a user.

        Returns:
            The summary record, or None when the user has none yet

        Raises:
            DatabaseError: If the query fails
        """
        try:
            response = await asyncio.to_thread(
                lambda: self.client.table(self.table)
                .select("summary, created_at")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("summary_read_failed", exc_info=True, error=str(e))
            raise DatabaseError(f"Failed to fetch chat summary: {e}") from e

        rows = response.data or []
        if not rows or not rows[0].get("summary"):
            logger.info("summary_not_found", user_id=user_id)
            return None
        return SummaryRecord.model_validate(rows[0])

    async def add(self, user_id: str, summary: str) -> None:
        try:
            await asyncio.to_thread(
                lambda: self.client.table(self.table)
                .insert({"user_id": user_id, "summary": summary})
                .execute()
            )
        except Exception as e:
            logger.error("summary_write_failed", exc_info=True, error=str(e))
            raise DatabaseError(f"Failed to store chat summary: {e}") from e
