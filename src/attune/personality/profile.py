"""Personality profile structures and the context objects the engine consumes."""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from typing import Any

from attune.core.typing import JSONDict

COMMUNICATION_STYLES = frozenset({"direct", "supportive", "analytical", "creative"})
DECISION_STYLES = frozenset({"data-driven", "intuitive", "collaborative", "decisive", "analytical"})
COACHING_APPROACHES = frozenset({"challenging", "nurturing", "structured", "adaptive", "supportive"})
ENERGY_LEVELS = frozenset({"calm", "moderate", "high", "variable"})


def _pick(data: Mapping[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    if snake in data:
        return data[snake]
    return data.get(camel, default)


def to_local_naive(value: datetime) -> datetime:
    """Aware datetimes are converted to naive local time; naive ones pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


@dataclass(frozen=True)
class PersonalityProfile:
    """Agent personality: four style tags plus how far it may adapt (0-100)."""

    communication_style: str
    decision_style: str
    coaching_approach: str
    energy_level: str
    adaptation_level: int

    def __post_init__(self):
        checks = (
            ("communication_style", self.communication_style, COMMUNICATION_STYLES),
            ("decision_style", self.decision_style, DECISION_STYLES),
            ("coaching_approach", self.coaching_approach, COACHING_APPROACHES),
            ("energy_level", self.energy_level, ENERGY_LEVELS),
        )
        for name, value, allowed in checks:
            if value not in allowed:
                raise ValueError(f"Unknown {name} {value!r}; expected one of {sorted(allowed)}")
        if not 0 <= self.adaptation_level <= 100:
            raise ValueError(f"adaptation_level must be within 0-100, got {self.adaptation_level}")

    def with_styles(self, **styles: str) -> "PersonalityProfile":
        return replace(self, **styles)

    def to_dict(self) -> JSONDict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PersonalityProfile":
        return cls(
            communication_style=_pick(data, "communication_style", "communicationStyle"),
            decision_style=_pick(data, "decision_style", "decisionStyle"),
            coaching_approach=_pick(data, "coaching_approach", "coachingApproach"),
            energy_level=_pick(data, "energy_level", "energyLevel"),
            adaptation_level=int(_pick(data, "adaptation_level", "adaptationLevel", 0)),
        )


@dataclass
class PersonalityTraits:
    """Trait intensities, each 0-100."""

    supportiveness: int
    directness: int
    analytical_depth: int
    creativity: int
    patience: int


@dataclass
class ResponseStyle:
    """Shape of a single reply; numeric fields are 0-1."""

    tone: str
    directness: float
    supportiveness: float
    analytical_depth: float
    personal_touch: float
    pacing: str


@dataclass
class SituationContext:
    """Lightweight per-turn context supplied by the caller."""

    emotional_state: str | None = None  # e.g. "stressed"
    urgency: str | None = None  # "low" | "medium" | "high"
    task_type: str | None = None  # e.g. "analysis", "brainstorm"
    relationship_strength: str | None = None  # "low" | "medium" | "high"

    @classmethod
    def coerce(cls, context: "SituationContext | Mapping[str, Any] | None") -> "SituationContext":
        if context is None:
            return cls()
        if isinstance(context, SituationContext):
            return context
        return cls(
            emotional_state=_pick(context, "emotional_state", "emotionalState"),
            urgency=context.get("urgency"),
            task_type=_pick(context, "task_type", "taskType"),
            relationship_strength=_pick(context, "relationship_strength", "relationshipStrength"),
        )

    @property
    def stressed(self) -> bool:
        return self.emotional_state == "stressed"

    @property
    def urgent(self) -> bool:
        return self.urgency == "high"


@dataclass
class RelationshipMetrics:
    trust_level: float = 50.0
    engagement_score: float = 50.0
    satisfaction_rating: float = 50.0

    @classmethod
    def coerce(
        cls, metrics: "RelationshipMetrics | Mapping[str, Any] | None"
    ) -> "RelationshipMetrics":
        if metrics is None:
            return cls()
        if isinstance(metrics, RelationshipMetrics):
            return metrics
        return cls(
            trust_level=float(_pick(metrics, "trust_level", "trustLevel", 50.0)),
            engagement_score=float(_pick(metrics, "engagement_score", "engagementScore", 50.0)),
            satisfaction_rating=float(
                _pick(metrics, "satisfaction_rating", "satisfactionRating", 50.0)
            ),
        )


@dataclass
class InteractionSummary:
    date: datetime
    type: str = "conversation"
    outcome: str = "neutral"  # positive | neutral | negative
    topics: list[str] = field(default_factory=list)
    duration: float = 0.0  # minutes

    @classmethod
    def coerce(
        cls, item: "InteractionSummary | Mapping[str, Any]"
    ) -> "InteractionSummary | None":
        """Build a summary from a mapping. Returns None when the date is missing or unparseable."""
        if isinstance(item, InteractionSummary):
            return replace(item, date=to_local_naive(item.date))
        date = item.get("date")
        if isinstance(date, str):
            try:
                date = datetime.fromisoformat(date)
            except ValueError:
                return None
        if not isinstance(date, datetime):
            return None
        return cls(
            date=to_local_naive(date),
            type=item.get("type", "conversation"),
            outcome=item.get("outcome", "neutral"),
            topics=list(item.get("topics") or []),
            duration=float(item.get("duration") or 0.0),
        )


@dataclass
class Deviation:
    response_index: int
    dimension: str
    expected: float
    observed: float

    @property
    def magnitude(self) -> float:
        return abs(self.observed - self.expected)


@dataclass
class ConsistencyReport:
    consistency_score: float
    deviations: list[Deviation] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
