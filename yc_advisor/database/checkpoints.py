"""
Append-only checkpoint stores keyed by thread id.
Neither store guarantees that checkpoints come back in step order.
"""

import asyncio
import uuid
from collections import defaultdict
from typing import Protocol
from supabase import Client

from yc_advisor.database.supabase import DatabaseError
from yc_advisor.models.domain import Checkpoint
from yc_advisor.utils.logger import get_logger

logger = get_logger(__name__)


class CheckpointStore(Protocol):
    async def list_checkpoints(self, thread_id: str) -> list[Checkpoint]: ...

    async def append(self, thread_id: str, checkpoint: Checkpoint) -> None: ...


class InMemoryCheckpointStore:
    """Process-local store for development and tests."""

    def __init__(self):
        self._threads: dict[str, list[Checkpoint]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def list_checkpoints(self, thread_id: str) -> list[Checkpoint]:
        async with self._lock:
            return [cp.model_copy(deep=True) for cp in self._threads.get(thread_id, [])]

    async def append(self, thread_id: str, checkpoint: Checkpoint) -> None:
        async with self._lock:
            self._threads[thread_id].append(checkpoint.model_copy(deep=True))


class SupabaseCheckpointStore:
    """
    Checkpoints kept in a Supabase table, one row per step.
    The checkpoint itself lives in the `metadata` JSON column.
    """

    def __init__(self, client: Client, table: str = "checkpoints"):
        self.client = client
        self.table = table

    async def list_checkpoints(self, thread_id: str) -> list[Checkpoint]:
        """
        Fetches every checkpoint of a thread.

        Raises:
            DatabaseError: If the query fails or a row cannot be parsed
        """
        try:
            response = await asyncio.to_thread(
                lambda: self.client.table(self.table)
                .select("metadata")
                .eq("thread_id", thread_id)
                .execute()
            )
            rows = response.data or []
            checkpoints = [
                Checkpoint.model_validate(row["metadata"])
                for row in rows
                if row.get("metadata")
            ]
        except Exception as e:
            logger.error("checkpoint_read_failed", exc_info=True, error=str(e))
            raise DatabaseError(f"Could not load checkpoints: {e}") from e

        logger.info("checkpoints_loaded", count=len(checkpoints))
        return checkpoints

    async def append(self, thread_id: str, checkpoint: Checkpoint) -> None:
        """
        Inserts one checkpoint row.

        Raises:
            DatabaseError: If the insert fails
        """
        row = {
            "thread_id": thread_id,
            "checkpoint_id": str(uuid.uuid4()),
            "metadata": checkpoint.model_dump(mode="json"),
        }
        try:
            await asyncio.to_thread(
                lambda: self.client.table(self.table).insert(row).execute()
            )
        except Exception as e:
            logger.error(
                "checkpoint_write_failed",
                exc_info=True,
                step=checkpoint.step,
                error=str(e),
            )
            raise DatabaseError(f"Could not persist checkpoint: {e}") from e
