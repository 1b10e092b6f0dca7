"""
Database package exports for Supabase integration and stores.
"""

from yc_advisor.database.supabase import (
    SupabaseVectorIndex,
    SupabaseIdentityProvider,
    DatabaseError,
)
from yc_advisor.database.checkpoints import (
    CheckpointStore,
    InMemoryCheckpointStore,
    SupabaseCheckpointStore,
)
from yc_advisor.database.summaries import (
    SummaryStore,
    InMemorySummaryStore,
    SupabaseSummaryStore,
)

__all__ = [
    "SupabaseVectorIndex",
    "SupabaseIdentityProvider",
    "DatabaseError",
    "CheckpointStore",
    "InMemoryCheckpointStore",
    "SupabaseCheckpointStore",
    "SummaryStore",
    "InMemorySummaryStore",
    "SupabaseSummaryStore",
]
