"""
Memory data types shared by every tier.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from attune.core.typing import JSONDict


class MemoryType(Enum):
    CONVERSATION = "conversation"
    FACT = "fact"
    PREFERENCE = "preference"
    DECISION = "decision"
    PATTERN = "pattern"


class Importance(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Sort weight (high > medium > low)."""
        return {"low": 1, "medium": 2, "high": 3}[self.value]


def new_memory_id() -> str:
    return f"mem_{uuid4().hex}"


@dataclass(frozen=True)
class MemoryEntry:
    """Single memory record.

    Identity and content are fixed once created; only the bookkeeping keys
    in ``metadata`` (access counters) change over the entry's lifetime.
    """

    id: str
    user_id: str
    session_id: str
    timestamp: datetime
    type: MemoryType
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def importance(self) -> Importance | None:
        value = self.metadata.get("importance")
        if value is None:
            return None
        if isinstance(value, Importance):
            return value
        try:
            return Importance(value)
        except ValueError:
            return None

    @property
    def access_count(self) -> int:
        value = self.metadata.get("access_count", self.metadata.get("accessCount"))
        return int(value or 0)

    def to_dict(self) -> JSONDict:
        """Serialize entry to dictionary for JSON storage."""
        metadata = dict(self.metadata)
        if isinstance(metadata.get("importance"), Importance):
            metadata["importance"] = metadata["importance"].value
        if isinstance(metadata.get("last_accessed"), datetime):
            metadata["last_accessed"] = metadata["last_accessed"].isoformat()
        return {
            "id": self.id,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "timestamp": self.timestamp.isoformat(),
            "type": self.type.value,
            "content": self.content,
            "metadata": metadata,
        }

    @classmethod
    def from_dict(cls, data: JSONDict) -> "MemoryEntry":
        """Deserialize entry from dictionary."""
        metadata = dict(data.get("metadata") or {})
        if isinstance(metadata.get("last_accessed"), str):
            metadata["last_accessed"] = datetime.fromisoformat(metadata["last_accessed"])
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            session_id=data["session_id"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            type=MemoryType(data["type"]),
            content=data["content"],
            metadata=metadata,
        )


@dataclass
class SemanticRecord:
    """Concept-keyed knowledge about a user."""

    relationships: list[Any] = field(default_factory=list)
    insights: list[Any] = field(default_factory=list)
    last_updated: datetime = field(default_factory=datetime.now)
    access_count: int = 0

    def to_dict(self) -> JSONDict:
        return {
            "relationships": list(self.relationships),
            "insights": list(self.insights),
            "last_updated": self.last_updated.isoformat(),
            "access_count": self.access_count,
        }

    @classmethod
    def from_dict(cls, data: JSONDict) -> "SemanticRecord":
        return cls(
            relationships=list(data.get("relationships") or []),
            insights=list(data.get("insights") or []),
            last_updated=datetime.fromisoformat(data["last_updated"]),
            access_count=int(data.get("access_count") or 0),
        )


@dataclass
class MemoryStats:
    """Snapshot of a user's memory footprint."""

    conversation_count: int
    long_term_count: int
    semantic_concept_count: int
    oldest_memory_timestamp: datetime | None
    most_accessed_entries: list[MemoryEntry]
    type_distribution: dict[str, int]


@dataclass
class ConsolidationResult:
    conversation_removed: int = 0
    long_term_removed: int = 0

    @property
    def total_removed(self) -> int:
        return self.conversation_removed + self.long_term_removed
