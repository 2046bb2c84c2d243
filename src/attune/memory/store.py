"""In-memory tiered store: conversational, long-term and semantic memory per user."""

import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from attune.core.logging import get_logger
from attune.core.typing import JSONDict
from attune.memory import ranking
from attune.memory.base import (
    ConsolidationResult,
    Importance,
    MemoryEntry,
    MemoryStats,
    MemoryType,
    SemanticRecord,
    new_memory_id,
)
from attune.memory.insights import ConversationPatterns, analyze_patterns
from attune.memory.preferences import UserPreferences

if TYPE_CHECKING:
    from attune.core.config import Settings

logger = get_logger("memory.store")

LONG_TERM_SESSION = "long_term"

PROMOTION_KEYWORDS = (
    "strategy", "goal", "preference", "important", "remember",
    "always", "never", "hate", "love", "critical",
)
HIGH_IMPORTANCE_KEYWORDS = ("critical", "important", "never", "always")
MEDIUM_IMPORTANCE_KEYWORDS = ("strategy", "goal", "plan", "remember")
PROMOTED_TYPES = (MemoryType.PREFERENCE, MemoryType.DECISION)

MOST_ACCESSED_LIMIT = 5


def _contains_any(content: str, keywords: Iterable[str]) -> bool:
    lowered = content.lower()
    return any(keyword in lowered for keyword in keywords)


def should_promote(entry: MemoryEntry) -> bool:
    """Preferences, decisions and durable-intent phrasing go to long-term memory."""
    if entry.type in PROMOTED_TYPES:
        return True
    return _contains_any(entry.content, PROMOTION_KEYWORDS)


def assess_importance(entry: MemoryEntry) -> Importance:
    if entry.type in PROMOTED_TYPES:
        return Importance.HIGH
    if _contains_any(entry.content, HIGH_IMPORTANCE_KEYWORDS):
        return Importance.HIGH
    if _contains_any(entry.content, MEDIUM_IMPORTANCE_KEYWORDS):
        return Importance.MEDIUM
    return Importance.LOW


def _long_term_key(entry: MemoryEntry) -> tuple[int, datetime]:
    importance = entry.importance or Importance.LOW
    return importance.rank, entry.timestamp


@dataclass
class UserMemory:
    """All tiers belonging to one user."""

    conversation: list[MemoryEntry] = field(default_factory=list)
    long_term: list[MemoryEntry] = field(default_factory=list)
    semantic: dict[str, SemanticRecord] = field(default_factory=dict)


class TieredMemoryStore:
    """Per-user conversational, long-term and semantic memory.

    State is process-local and lost on restart; see
    ``attune.memory.snapshot`` for optional SQLite snapshots.
    Every operation holds the user's lock, so concurrent callers on the
    same user cannot break the size caps or long-term ordering.
    """

    def __init__(
        self,
        conversation_capacity: int = 100,
        long_term_capacity: int = 500,
        recent_window: timedelta = ranking.DEFAULT_RECENT_WINDOW,
        clock: Callable[[], datetime] = datetime.now,
    ):
        if conversation_capacity < 1:
            raise ValueError(f"conversation_capacity must be >= 1, got {conversation_capacity}")
        if long_term_capacity < 1:
            raise ValueError(f"long_term_capacity must be >= 1, got {long_term_capacity}")

        self.conversation_capacity = conversation_capacity
        self.long_term_capacity = long_term_capacity
        self.recent_window = recent_window
        self._clock = clock
        self._users: dict[str, UserMemory] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()
        self._unregistered = threading.RLock()

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TieredMemoryStore":
        return cls(
            conversation_capacity=settings.conversation_capacity,
            long_term_capacity=settings.long_term_capacity,
            recent_window=settings.recent_window,
        )

    # Per-user state

    def _lock(self, user_id: str, create: bool = True) -> threading.RLock:
        """The user's lock. Reads pass ``create=False`` so unknown users stay unregistered."""
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                if not create:
                    return self._unregistered
                lock = self._locks[user_id] = threading.RLock()
            return lock

    def _memory(self, user_id: str) -> UserMemory:
        """Get or lazily create a user's tiers. Caller holds the user lock."""
        memory = self._users.get(user_id)
        if memory is None:
            memory = self._users[user_id] = UserMemory()
        return memory

    def _peek(self, user_id: str) -> UserMemory:
        """Read-only view; unknown users get empty tiers without being registered."""
        return self._users.get(user_id) or UserMemory()

    def users(self) -> list[str]:
        with self._guard:
            return list(self._users)

    # Conversational tier

    def store_conversation(
        self,
        user_id: str,
        session_id: str,
        content: str,
        type: MemoryType | str = MemoryType.CONVERSATION,
        metadata: Mapping[str, Any] | None = None,
    ) -> MemoryEntry:
        """Append a turn to conversational memory, promoting it when it qualifies."""
        entry = MemoryEntry(
            id=new_memory_id(),
            user_id=user_id,
            session_id=session_id,
            timestamp=self._clock(),
            type=MemoryType(type),
            content=content,
            metadata=dict(metadata or {}),
        )

        with self._lock(user_id):
            memory = self._memory(user_id)
            memory.conversation.append(entry)
            overflow = len(memory.conversation) - self.conversation_capacity
            if overflow > 0:
                del memory.conversation[:overflow]
                logger.debug(f"Evicted {overflow} conversational memories for {user_id}")

            if should_promote(entry):
                importance = assess_importance(entry)
                self.store_long_term(
                    user_id, entry.content, entry.type, importance, entry.metadata
                )
                logger.info(f"Promoted {entry.type.value} memory for {user_id} ({importance.value})")

        return entry

    # Long-term tier

    def store_long_term(
        self,
        user_id: str,
        content: str,
        type: MemoryType | str,
        importance: Importance | str,
        metadata: Mapping[str, Any] | None = None,
    ) -> MemoryEntry:
        """Insert into long-term memory, keeping it sorted and bounded."""
        now = self._clock()
        entry = MemoryEntry(
            id=new_memory_id(),
            user_id=user_id,
            session_id=LONG_TERM_SESSION,
            timestamp=now,
            type=MemoryType(type),
            content=content,
            metadata={
                **(metadata or {}),
                "importance": Importance(importance).value,
                "access_count": 0,
                "last_accessed": now,
            },
        )

        with self._lock(user_id):
            memory = self._memory(user_id)
            memory.long_term.append(entry)
            memory.long_term.sort(key=_long_term_key, reverse=True)
            overflow = len(memory.long_term) - self.long_term_capacity
            if overflow > 0:
                del memory.long_term[-overflow:]
                logger.debug(f"Evicted {overflow} long-term memories for {user_id}")

        return entry

    # Retrieval

    def retrieve(self, user_id: str, query: str, max_results: int = 10) -> list[MemoryEntry]:
        """Top memories for a query across conversational and long-term tiers."""
        if max_results <= 0:
            return []

        with self._lock(user_id, create=False):
            memory = self._peek(user_id)
            candidates = [*memory.conversation, *memory.long_term]
            if not candidates:
                return []
            ranked = ranking.rank(candidates, query, self._clock(), self.recent_window)

        results = [entry for entry, _ in ranked[:max_results]]
        logger.debug(f"Retrieved {len(results)}/{len(candidates)} memories for {user_id}")
        return results

    def mark_accessed(self, user_id: str, entry_ids: Iterable[str]) -> int:
        """Record that the caller used these memories."""
        wanted = set(entry_ids)
        if not wanted:
            return 0

        touched = 0
        with self._lock(user_id, create=False):
            memory = self._peek(user_id)
            now = self._clock()
            for entry in (*memory.conversation, *memory.long_term):
                if entry.id in wanted:
                    entry.metadata["access_count"] = entry.access_count + 1
                    entry.metadata["last_accessed"] = now
                    touched += 1
        return touched

    # Semantic tier

    def store_semantic(
        self,
        user_id: str,
        concept: str,
        relationships: list[Any],
        insights: list[Any],
    ) -> SemanticRecord:
        with self._lock(user_id):
            memory = self._memory(user_id)
            previous = memory.semantic.get(concept)
            record = SemanticRecord(
                relationships=list(relationships),
                insights=list(insights),
                last_updated=self._clock(),
                access_count=(previous.access_count if previous else 0) + 1,
            )
            memory.semantic[concept] = record
        return record

    def get_semantic(
        self, user_id: str, concept: str | None = None
    ) -> SemanticRecord | dict[str, SemanticRecord] | None:
        """One concept's record (or None), or every concept when none is given."""
        with self._lock(user_id, create=False):
            semantic = self._peek(user_id).semantic
            if concept is not None:
                return semantic.get(concept)
            return dict(semantic)

    # Consolidation

    def consolidate(self, user_id: str) -> ConsolidationResult:
        """Deduplicate conversational memory and drop superseded long-term entries.

        Idempotent: a second call with no writes in between removes nothing.
        """
        result = ConsolidationResult()
        with self._lock(user_id, create=False):
            memory = self._users.get(user_id)
            if memory is None:
                return result

            seen: set[tuple[str, MemoryType]] = set()
            unique = []
            for entry in memory.conversation:
                key = (entry.content, entry.type)
                if key not in seen:
                    seen.add(key)
                    unique.append(entry)
            result.conversation_removed = len(memory.conversation) - len(unique)
            memory.conversation = unique

            # Newest entry per (type, content) survives; first one wins on equal timestamps.
            newest: dict[tuple[MemoryType, str], MemoryEntry] = {}
            for entry in memory.long_term:
                key = (entry.type, entry.content)
                current = newest.get(key)
                if current is None or entry.timestamp > current.timestamp:
                    newest[key] = entry
            keep = {id(entry) for entry in newest.values()}
            compacted = [entry for entry in memory.long_term if id(entry) in keep]
            compacted.sort(key=_long_term_key, reverse=True)
            result.long_term_removed = len(memory.long_term) - len(compacted)
            memory.long_term = compacted

        if result.total_removed:
            logger.info(
                f"Consolidated memory for {user_id}: "
                f"{result.conversation_removed} conversational, "
                f"{result.long_term_removed} long-term removed"
            )
        else:
            logger.debug(f"Consolidation for {user_id} found nothing to remove")
        return result

    # Introspection

    def get_stats(self, user_id: str) -> MemoryStats:
        with self._lock(user_id, create=False):
            memory = self._peek(user_id)
            everything = [*memory.conversation, *memory.long_term]

            distribution = {memory_type.value: 0 for memory_type in MemoryType}
            for entry in everything:
                distribution[entry.type.value] += 1

            accessed = [e for e in memory.long_term if e.access_count > 0]
            accessed.sort(key=lambda e: e.access_count, reverse=True)

            return MemoryStats(
                conversation_count=len(memory.conversation),
                long_term_count=len(memory.long_term),
                semantic_concept_count=len(memory.semantic),
                oldest_memory_timestamp=min((e.timestamp for e in everything), default=None),
                most_accessed_entries=accessed[:MOST_ACCESSED_LIMIT],
                type_distribution=distribution,
            )

    get_memory_stats = get_stats

    def get_user_preferences(self, user_id: str) -> UserPreferences:
        """Fold the user's long-term preference memories into one structure."""
        preferences = UserPreferences()
        with self._lock(user_id, create=False):
            for entry in self._peek(user_id).long_term:
                if entry.type == MemoryType.PREFERENCE:
                    preferences.apply_memory(entry.content)
        return preferences

    def get_conversation_patterns(self, user_id: str) -> ConversationPatterns:
        with self._lock(user_id, create=False):
            memory = self._peek(user_id)
            return analyze_patterns([*memory.conversation, *memory.long_term])

    def get_conversation(self, user_id: str) -> list[MemoryEntry]:
        """Copy of the conversational tier, oldest first."""
        with self._lock(user_id, create=False):
            return list(self._peek(user_id).conversation)

    def get_long_term(self, user_id: str) -> list[MemoryEntry]:
        """Copy of the long-term tier in importance/recency order."""
        with self._lock(user_id, create=False):
            return list(self._peek(user_id).long_term)

    # Plain-data export for snapshot storage

    def export_user(self, user_id: str) -> JSONDict:
        with self._lock(user_id, create=False):
            memory = self._peek(user_id)
            return {
                "conversation": [e.to_dict() for e in memory.conversation],
                "long_term": [e.to_dict() for e in memory.long_term],
                "semantic": {c: r.to_dict() for c, r in memory.semantic.items()},
            }

    def import_user(self, user_id: str, data: JSONDict) -> None:
        """Replace a user's tiers from exported data, re-applying caps and ordering."""
        conversation = [MemoryEntry.from_dict(d) for d in data.get("conversation", [])]
        long_term = [MemoryEntry.from_dict(d) for d in data.get("long_term", [])]
        long_term.sort(key=_long_term_key, reverse=True)
        semantic = {
            concept: SemanticRecord.from_dict(record)
            for concept, record in (data.get("semantic") or {}).items()
        }

        with self._lock(user_id):
            self._users[user_id] = UserMemory(
                conversation=conversation[-self.conversation_capacity:],
                long_term=long_term[: self.long_term_capacity],
                semantic=semantic,
            )
        logger.debug(
            f"Imported {len(conversation)} conversational, {len(long_term)} long-term, "
            f"{len(semantic)} semantic records for {user_id}"
        )
