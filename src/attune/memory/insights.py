"""Conversation pattern analysis over a user's stored memories."""

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from attune.core.typing import JSONDict
from attune.memory.base import MemoryEntry, MemoryType

TOPIC_MIN_LENGTH = 5
MAX_TOPICS = 10
MAX_ENTHUSIASM_TOPICS = 5

STRESS_WORDS = frozenset(
    {"stressed", "overwhelmed", "worried", "anxious", "frustrated", "deadline", "urgent", "panic"}
)
ENTHUSIASM_WORDS = frozenset({"excited", "love", "great", "amazing", "awesome", "thrilled"})


@dataclass
class ConversationStyle:
    average_length: float = 0.0
    question_frequency: float = 0.0
    emotional_tone: str = "professional"


@dataclass
class TimePatterns:
    preferred_hours: list[int] = field(default_factory=list)
    preferred_days: list[int] = field(default_factory=list)  # Monday == 0


@dataclass
class EmotionalPatterns:
    overall_tone: str = "professional"
    stress_indicators: list[str] = field(default_factory=list)
    enthusiasm_topics: list[str] = field(default_factory=list)


@dataclass
class ConversationPatterns:
    """Aggregate view of how a user talks, used to build adaptation inputs."""

    common_topics: list[str] = field(default_factory=list)
    conversation_style: ConversationStyle = field(default_factory=ConversationStyle)
    time_patterns: TimePatterns = field(default_factory=TimePatterns)
    emotional_patterns: EmotionalPatterns = field(default_factory=EmotionalPatterns)

    def to_dict(self) -> JSONDict:
        return {
            "common_topics": list(self.common_topics),
            "conversation_style": {
                "average_length": self.conversation_style.average_length,
                "question_frequency": self.conversation_style.question_frequency,
                "emotional_tone": self.conversation_style.emotional_tone,
            },
            "time_patterns": {
                "preferred_hours": list(self.time_patterns.preferred_hours),
                "preferred_days": list(self.time_patterns.preferred_days),
            },
            "emotional_patterns": {
                "overall_tone": self.emotional_patterns.overall_tone,
                "stress_indicators": list(self.emotional_patterns.stress_indicators),
                "enthusiasm_topics": list(self.emotional_patterns.enthusiasm_topics),
            },
        }


def _words(content: str) -> list[str]:
    return content.lower().split()


def _topic_words(content: str) -> list[str]:
    return [word for word in _words(content) if len(word) >= TOPIC_MIN_LENGTH]


def extract_common_topics(memories: Iterable[MemoryEntry], limit: int = MAX_TOPICS) -> list[str]:
    """Most frequent long words; ties keep first-seen order."""
    counts: Counter[str] = Counter()
    for memory in memories:
        counts.update(_topic_words(memory.content))
    return [topic for topic, _ in counts.most_common(limit)]


def _most_common(values: Iterable[int], limit: int = 3) -> list[int]:
    return [value for value, _ in Counter(values).most_common(limit)]


def classify_tone(memories: Iterable[MemoryEntry]) -> str:
    stress = 0
    enthusiasm = 0
    for memory in memories:
        words = set(_words(memory.content))
        stress += len(words & STRESS_WORDS)
        enthusiasm += len(words & ENTHUSIASM_WORDS)

    if stress > enthusiasm:
        return "stressed"
    if enthusiasm > stress:
        return "enthusiastic"
    return "professional"


def analyze_conversation_style(memories: Sequence[MemoryEntry]) -> ConversationStyle:
    conversations = [m for m in memories if m.type == MemoryType.CONVERSATION]
    if not conversations:
        return ConversationStyle()

    total_length = sum(len(m.content) for m in conversations)
    questions = sum(1 for m in conversations if "?" in m.content)
    return ConversationStyle(
        average_length=total_length / len(conversations),
        question_frequency=questions / len(conversations),
        emotional_tone=classify_tone(conversations),
    )


def analyze_time_patterns(memories: Sequence[MemoryEntry]) -> TimePatterns:
    return TimePatterns(
        preferred_hours=_most_common(m.timestamp.hour for m in memories),
        preferred_days=_most_common(m.timestamp.weekday() for m in memories),
    )


def analyze_emotional_patterns(memories: Sequence[MemoryEntry]) -> EmotionalPatterns:
    stress_indicators: list[str] = []
    enthusiasm_counts: Counter[str] = Counter()

    for memory in memories:
        words = _words(memory.content)
        for word in words:
            if word in STRESS_WORDS and word not in stress_indicators:
                stress_indicators.append(word)
        if ENTHUSIASM_WORDS.intersection(words):
            enthusiasm_counts.update(
                w for w in _topic_words(memory.content) if w not in ENTHUSIASM_WORDS
            )

    return EmotionalPatterns(
        overall_tone=classify_tone(memories),
        stress_indicators=stress_indicators,
        enthusiasm_topics=[t for t, _ in enthusiasm_counts.most_common(MAX_ENTHUSIASM_TOPICS)],
    )


def analyze_patterns(memories: Sequence[MemoryEntry]) -> ConversationPatterns:
    """Build the full pattern summary for a list of memories."""
    return ConversationPatterns(
        common_topics=extract_common_topics(memories),
        conversation_style=analyze_conversation_style(memories),
        time_patterns=analyze_time_patterns(memories),
        emotional_patterns=analyze_emotional_patterns(memories),
    )
