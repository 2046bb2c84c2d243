"""
Memory module - tiered per-user memory.

Tiers:
- conversational: recent turns, FIFO-bounded
- long-term: promoted entries ordered by importance then recency
- semantic: concept-keyed relationships and insights

Storage: in-process; optional SQLite snapshots via memory.snapshot
"""

from attune.memory.base import Importance, MemoryEntry, MemoryType, SemanticRecord
from attune.memory.preferences import UserPreferences
from attune.memory.store import TieredMemoryStore

__all__ = [
    "Importance",
    "MemoryEntry",
    "MemoryType",
    "SemanticRecord",
    "TieredMemoryStore",
    "UserPreferences",
]
