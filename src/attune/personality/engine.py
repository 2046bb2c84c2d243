"""Per-user personality adaptation.

The engine holds one base profile and, per user, an adapted copy. Adapted
profiles move toward style targets inferred from preferences, relationship
trust and recent engagement. Blending is a hard threshold: when the
profile's ``adaptation_level`` is above 50 every target is adopted outright,
otherwise the current value is kept.
"""

import threading
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any

from attune.core.logging import get_logger
from attune.memory.preferences import UserPreferences
from attune.personality.consistency import check_consistency
from attune.personality.profile import (
    ConsistencyReport,
    InteractionSummary,
    PersonalityProfile,
    PersonalityTraits,
    RelationshipMetrics,
    ResponseStyle,
    SituationContext,
    to_local_naive,
)

if TYPE_CHECKING:
    from attune.core.config import Settings

logger = get_logger("personality.engine")

BLEND_THRESHOLD = 0.5
ENGAGEMENT_WINDOW = timedelta(days=7)
HIGH_ENGAGEMENT_MIN_INTERACTIONS = 5
HIGH_ENGAGEMENT_POSITIVE_SHARE = 0.5

# Trait lookups (0-100); unknown tags score 50
SUPPORTIVENESS_BY_COMMUNICATION = {"supportive": 90, "analytical": 60, "direct": 40, "creative": 70}
DIRECTNESS_BY_COMMUNICATION = {"direct": 90, "analytical": 70, "supportive": 30, "creative": 50}
ANALYTICAL_BY_DECISION = {
    "data-driven": 90, "analytical": 85, "collaborative": 60, "intuitive": 40, "decisive": 70,
}
CREATIVITY_BY_COMMUNICATION = {"creative": 90, "supportive": 60, "analytical": 40, "direct": 30}
PATIENCE_BY_COACHING = {"nurturing": 90, "adaptive": 70, "structured": 60, "challenging": 40}

# Response style lookups (0-1); unknown tags score 0.5
STYLE_DIRECTNESS = {"direct": 0.9, "analytical": 0.7, "supportive": 0.3, "creative": 0.5}
STYLE_SUPPORTIVENESS = {
    "nurturing": 0.9, "supportive": 0.8, "adaptive": 0.6, "structured": 0.4, "challenging": 0.3,
}
STYLE_ANALYTICAL_DEPTH = {
    "data-driven": 0.9, "analytical": 0.8, "collaborative": 0.6, "decisive": 0.7, "intuitive": 0.4,
}
STYLE_PERSONAL_TOUCH = {"supportive": 0.8, "creative": 0.7, "analytical": 0.4, "direct": 0.3}


class AdaptationState(Enum):
    UNADAPTED = "unadapted"
    ADAPTED = "adapted"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def analyze_engagement(
    interaction_history: Sequence[InteractionSummary], now: datetime
) -> str:
    """Classify recent engagement as low, moderate or high.

    Low: nothing in the last week. High: at least five recent interactions,
    half or more of them positive.
    """
    now = to_local_naive(now)
    recent = [
        i for i in interaction_history if now - to_local_naive(i.date) <= ENGAGEMENT_WINDOW
    ]
    if not recent:
        return "low"

    positive = sum(1 for i in recent if i.outcome == "positive")
    if (
        len(recent) >= HIGH_ENGAGEMENT_MIN_INTERACTIONS
        and positive / len(recent) >= HIGH_ENGAGEMENT_POSITIVE_SHARE
    ):
        return "high"
    return "moderate"


class PersonalityEngine:
    """Base profile plus per-user adapted profiles."""

    def __init__(
        self,
        base_profile: PersonalityProfile,
        clock: Callable[[], datetime] = datetime.now,
    ):
        if base_profile is None:
            raise ValueError("A base personality profile is required")
        if not isinstance(base_profile, PersonalityProfile):
            raise ValueError(
                f"base_profile must be a PersonalityProfile, got {type(base_profile).__name__}"
            )

        self.base_profile = base_profile
        self._clock = clock
        self._adapted: dict[str, PersonalityProfile] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()
        self._unregistered = threading.RLock()

    @classmethod
    def from_settings(cls, settings: "Settings") -> "PersonalityEngine":
        return cls(settings.base_profile())

    def _lock(self, user_id: str, create: bool = True) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                if not create:
                    return self._unregistered
                lock = self._locks[user_id] = threading.RLock()
            return lock

    # Per-user profile lifecycle

    def adaptation_state(self, user_id: str) -> AdaptationState:
        with self._lock(user_id, create=False):
            if user_id in self._adapted:
                return AdaptationState.ADAPTED
            return AdaptationState.UNADAPTED

    def get_adapted_personality(self, user_id: str) -> PersonalityProfile:
        """Stored adapted profile, or the base profile if the user has none."""
        with self._lock(user_id, create=False):
            return self._adapted.get(user_id, self.base_profile)

    def reset(self, user_id: str) -> None:
        with self._lock(user_id, create=False):
            self._adapted.pop(user_id, None)

    def adapt_personality(
        self,
        user_id: str,
        preferences: UserPreferences | Mapping[str, Any],
        relationship_metrics: RelationshipMetrics | Mapping[str, Any] | None,
        interaction_history: Sequence[InteractionSummary | Mapping[str, Any]] = (),
    ) -> PersonalityProfile:
        """Recompute and store the user's adapted profile."""
        if not isinstance(preferences, UserPreferences):
            preferences = UserPreferences.from_mapping(preferences or {})
        metrics = RelationshipMetrics.coerce(relationship_metrics)
        history = []
        for item in interaction_history:
            summary = InteractionSummary.coerce(item)
            if summary is None:
                logger.debug(f"Skipping interaction without a usable date for {user_id}")
                continue
            history.append(summary)

        with self._lock(user_id):
            current = self._adapted.get(user_id, self.base_profile)
            targets = self._calculate_targets(preferences, metrics, history)
            adapted = self._blend(current, targets)
            self._adapted[user_id] = adapted

        if adapted != current:
            logger.info(f"Adapted personality for {user_id}: {adapted.to_dict()}")
        else:
            logger.debug(f"Personality for {user_id} unchanged after adaptation")
        return adapted

    def _calculate_targets(
        self,
        preferences: UserPreferences,
        metrics: RelationshipMetrics,
        history: Sequence[InteractionSummary],
    ) -> dict[str, str]:
        """Per-dimension targets; a dimension with no triggering signal falls back to the base."""
        base = self.base_profile
        targets = {
            "communication_style": base.communication_style,
            "decision_style": base.decision_style,
            "coaching_approach": base.coaching_approach,
            "energy_level": base.energy_level,
        }
        trust = metrics.trust_level

        if preferences.feedback_style == "direct" and trust > 70:
            targets["communication_style"] = "direct"
        elif preferences.feedback_style == "gentle":
            targets["communication_style"] = "supportive"

        if preferences.challenge_level == "high" and trust > 80:
            targets["coaching_approach"] = "challenging"
        elif trust < 50:
            targets["coaching_approach"] = "nurturing"

        if preferences.meeting_preference == "structured":
            targets["decision_style"] = "data-driven"
        elif preferences.meeting_preference == "casual":
            targets["decision_style"] = "collaborative"

        engagement = analyze_engagement(history, self._clock())
        if engagement == "low":
            targets["energy_level"] = "moderate"
        elif engagement == "high":
            targets["energy_level"] = "high"

        return targets

    def _blend(self, current: PersonalityProfile, targets: dict[str, str]) -> PersonalityProfile:
        max_adaptation = current.adaptation_level / 100
        if max_adaptation > BLEND_THRESHOLD:
            return current.with_styles(**targets)
        return current

    # Derived views

    def get_personality_traits(
        self,
        profile: PersonalityProfile,
        conversation_context: SituationContext | Mapping[str, Any] | None = None,
    ) -> PersonalityTraits:
        context = SituationContext.coerce(conversation_context)

        supportiveness = SUPPORTIVENESS_BY_COMMUNICATION.get(profile.communication_style, 50)
        directness = DIRECTNESS_BY_COMMUNICATION.get(profile.communication_style, 50)
        analytical_depth = ANALYTICAL_BY_DECISION.get(profile.decision_style, 50)
        creativity = CREATIVITY_BY_COMMUNICATION.get(profile.communication_style, 50)
        patience = PATIENCE_BY_COACHING.get(profile.coaching_approach, 50)

        if context.stressed or context.urgent:
            supportiveness += 20
            patience += 15
        if context.task_type == "analysis" and context.urgent:
            directness += 15
            analytical_depth += 10
        if context.task_type == "brainstorm":
            creativity += 25

        return PersonalityTraits(
            supportiveness=int(_clamp(supportiveness, 0, 100)),
            directness=int(_clamp(directness, 0, 100)),
            analytical_depth=int(_clamp(analytical_depth, 0, 100)),
            creativity=int(_clamp(creativity, 0, 100)),
            patience=int(_clamp(patience, 0, 100)),
        )

    def get_response_style(
        self,
        profile: PersonalityProfile,
        situation_context: SituationContext | Mapping[str, Any] | None = None,
    ) -> ResponseStyle:
        context = SituationContext.coerce(situation_context)
        return ResponseStyle(
            tone=self._tone(profile, context),
            directness=self._directness(profile, context),
            supportiveness=self._supportiveness(profile, context),
            analytical_depth=self._analytical_depth(profile, context),
            personal_touch=self._personal_touch(profile, context),
            pacing=self._pacing(profile, context),
        )

    def _tone(self, profile: PersonalityProfile, context: SituationContext) -> str:
        if context.stressed:
            return "supportive"
        if context.task_type == "analysis":
            return "professional"
        if profile.energy_level == "high":
            return "energetic"
        if profile.communication_style == "supportive":
            return "warm"
        return "balanced"

    def _directness(self, profile: PersonalityProfile, context: SituationContext) -> float:
        value = STYLE_DIRECTNESS.get(profile.communication_style, 0.5)
        if context.urgent:
            value += 0.2
        if context.stressed:
            value -= 0.3
        return _clamp(value, 0.0, 1.0)

    def _supportiveness(self, profile: PersonalityProfile, context: SituationContext) -> float:
        value = STYLE_SUPPORTIVENESS.get(profile.coaching_approach, 0.5)
        if context.stressed:
            value += 0.3
        if context.relationship_strength == "high":
            value += 0.1
        return _clamp(value, 0.0, 1.0)

    def _analytical_depth(self, profile: PersonalityProfile, context: SituationContext) -> float:
        value = STYLE_ANALYTICAL_DEPTH.get(profile.decision_style, 0.5)
        if context.task_type == "analysis":
            value += 0.2
        if context.urgent:
            value -= 0.1
        return _clamp(value, 0.0, 1.0)

    def _personal_touch(self, profile: PersonalityProfile, context: SituationContext) -> float:
        value = STYLE_PERSONAL_TOUCH.get(profile.communication_style, 0.5)
        if context.relationship_strength == "high":
            value += 0.2
        if context.task_type == "analysis":
            value -= 0.2
        return _clamp(value, 0.0, 1.0)

    def _pacing(self, profile: PersonalityProfile, context: SituationContext) -> str:
        if context.urgent:
            return "fast"
        if profile.energy_level == "high":
            return "energetic"
        if context.stressed:
            return "careful"
        return "moderate"

    def validate_personality_consistency(
        self, profile: PersonalityProfile, recent_responses: Sequence[Any]
    ) -> ConsistencyReport:
        """Compare recent replies with the profile's baseline response style."""
        expected = self.get_response_style(profile)
        report = check_consistency(profile, expected, recent_responses)
        if report.deviations:
            logger.debug(
                f"Consistency {report.consistency_score} with {len(report.deviations)} deviations"
            )
        return report
