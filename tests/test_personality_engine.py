"""Tests for personality adaptation, traits and response style."""

from datetime import datetime, timedelta, timezone

import pytest

from attune.memory.preferences import UserPreferences
from attune.personality.engine import AdaptationState, PersonalityEngine, analyze_engagement
from attune.personality.profile import (
    InteractionSummary,
    PersonalityProfile,
    SituationContext,
)


def make_profile(**overrides) -> PersonalityProfile:
    fields = {
        "communication_style": "supportive",
        "decision_style": "intuitive",
        "coaching_approach": "adaptive",
        "energy_level": "calm",
        "adaptation_level": 80,
    }
    fields.update(overrides)
    return PersonalityProfile(**fields)


@pytest.fixture
def engine(clock) -> PersonalityEngine:
    return PersonalityEngine(make_profile(), clock=clock)


def test_missing_base_profile_fails_fast():
    with pytest.raises(ValueError):
        PersonalityEngine(None)
    with pytest.raises(ValueError):
        PersonalityEngine({"communication_style": "direct"})


def test_profile_validation():
    with pytest.raises(ValueError):
        make_profile(communication_style="sarcastic")
    with pytest.raises(ValueError):
        make_profile(adaptation_level=101)


def test_profile_from_camel_case_dict():
    profile = PersonalityProfile.from_dict(
        {
            "communicationStyle": "direct",
            "decisionStyle": "decisive",
            "coachingApproach": "structured",
            "energyLevel": "high",
            "adaptationLevel": 40,
        }
    )
    assert profile == make_profile(
        communication_style="direct",
        decision_style="decisive",
        coaching_approach="structured",
        energy_level="high",
        adaptation_level=40,
    )
    assert profile.to_dict()["adaptation_level"] == 40


def test_unadapted_user_gets_base_without_record(engine: PersonalityEngine):
    assert engine.get_adapted_personality("u1") == engine.base_profile
    assert engine.adaptation_state("u1") == AdaptationState.UNADAPTED


def test_blend_threshold_adopts_target_above_half(clock):
    """adaptation_level 80 -> 0.8 > 0.5, target adopted outright."""
    engine = PersonalityEngine(make_profile(adaptation_level=80), clock=clock)

    adapted = engine.adapt_personality("u1", {"feedbackStyle": "direct"}, {"trustLevel": 75}, [])

    assert adapted.communication_style == "direct"
    assert adapted.adaptation_level == 80
    assert engine.adaptation_state("u1") == AdaptationState.ADAPTED
    assert engine.get_adapted_personality("u1") == adapted


def test_blend_threshold_keeps_current_at_or_below_half(clock):
    """Known quirk: blending is all-or-nothing, so 0.3 ignores every target."""
    engine = PersonalityEngine(make_profile(adaptation_level=30), clock=clock)

    adapted = engine.adapt_personality("u1", {"feedbackStyle": "direct"}, {"trustLevel": 75}, [])

    assert adapted.communication_style == "supportive"
    assert adapted == engine.base_profile


def test_blend_threshold_boundary_is_exclusive(clock):
    engine = PersonalityEngine(make_profile(adaptation_level=50), clock=clock)
    adapted = engine.adapt_personality("u1", {"feedbackStyle": "direct"}, {"trustLevel": 90}, [])
    assert adapted.communication_style == "supportive"


def test_direct_feedback_needs_trust(engine: PersonalityEngine):
    adapted = engine.adapt_personality("u1", {"feedbackStyle": "direct"}, {"trustLevel": 70}, [])
    assert adapted.communication_style == "supportive"


def test_gentle_feedback_targets_supportive(clock):
    engine = PersonalityEngine(make_profile(communication_style="direct"), clock=clock)
    adapted = engine.adapt_personality("u1", {"feedbackStyle": "gentle"}, {"trustLevel": 90}, [])
    assert adapted.communication_style == "supportive"


def test_coaching_targets(engine: PersonalityEngine):
    challenged = engine.adapt_personality(
        "u1", {"challengeLevel": "high"}, {"trustLevel": 85}, []
    )
    assert challenged.coaching_approach == "challenging"

    nurtured = engine.adapt_personality("u2", {"challengeLevel": "high"}, {"trustLevel": 40}, [])
    assert nurtured.coaching_approach == "nurturing"

    unchanged = engine.adapt_personality("u3", {"challengeLevel": "high"}, {"trustLevel": 60}, [])
    assert unchanged.coaching_approach == "adaptive"


def test_decision_targets(engine: PersonalityEngine):
    structured = engine.adapt_personality("u1", UserPreferences(meeting_preference="structured"), None, [])
    casual = engine.adapt_personality("u2", UserPreferences(meeting_preference="casual"), None, [])
    mixed = engine.adapt_personality("u3", UserPreferences(meeting_preference="mixed"), None, [])

    assert structured.decision_style == "data-driven"
    assert casual.decision_style == "collaborative"
    assert mixed.decision_style == "intuitive"


def test_dimension_without_signal_returns_to_base(engine: PersonalityEngine):
    """A later call without the triggering signal drifts the dimension back to base."""
    first = engine.adapt_personality("u1", {"feedbackStyle": "direct"}, {"trustLevel": 90}, [])
    assert first.communication_style == "direct"

    second = engine.adapt_personality("u1", {"feedbackStyle": "data-focused"}, {"trustLevel": 90}, [])
    assert second.communication_style == "supportive"


def test_energy_follows_engagement(engine: PersonalityEngine, clock):
    now = clock.now
    busy = [
        InteractionSummary(date=now - timedelta(hours=i), outcome="positive") for i in range(6)
    ]
    assert engine.adapt_personality("u1", {}, {"trustLevel": 60}, busy).energy_level == "high"
    assert engine.adapt_personality("u2", {}, {"trustLevel": 60}, []).energy_level == "moderate"


def test_analyze_engagement(clock):
    now = clock.now
    stale = [InteractionSummary(date=now - timedelta(days=30))]
    few = [InteractionSummary(date=now - timedelta(days=1), outcome="positive")]
    many_negative = [
        InteractionSummary(date=now - timedelta(hours=i), outcome="negative") for i in range(6)
    ]

    assert analyze_engagement([], now) == "low"
    assert analyze_engagement(stale, now) == "low"
    assert analyze_engagement(few, now) == "moderate"
    assert analyze_engagement(many_negative, now) == "moderate"


def test_history_accepts_mappings(engine: PersonalityEngine, clock):
    history = [{"date": clock.now.isoformat(), "outcome": "positive"}]
    adapted = engine.adapt_personality("u1", {}, {"trust_level": 60}, history)
    assert adapted.energy_level == "calm"


def test_history_with_aware_dates():
    """Offset-aware timestamps are compared in local time against the naive clock."""
    engine = PersonalityEngine(make_profile())
    now = datetime.now(timezone.utc)
    history = [
        {"date": (now - timedelta(hours=i)).isoformat(), "outcome": "positive"} for i in range(5)
    ]
    history.append({"date": now.strftime("%Y-%m-%dT%H:%M:%SZ"), "outcome": "positive"})

    adapted = engine.adapt_personality("u1", {}, {"trustLevel": 60}, history)
    assert adapted.energy_level == "high"


def test_analyze_engagement_mixes_aware_and_naive(clock):
    now = clock.now
    aware = now.astimezone(timezone.utc)
    history = [InteractionSummary(date=aware - timedelta(hours=i), outcome="positive") for i in range(5)]
    assert analyze_engagement(history, now) == "high"


def test_history_items_without_usable_date_are_skipped(engine: PersonalityEngine):
    history = [{"outcome": "positive"}, {"date": "last tuesday", "outcome": "positive"}, {"date": None}]

    adapted = engine.adapt_personality("u1", {}, {"trustLevel": 60}, history)
    assert adapted.energy_level == "moderate"


def test_unknown_user_reads_do_not_register_locks(engine: PersonalityEngine):
    engine.get_adapted_personality("ghost")
    engine.adaptation_state("ghost")
    engine.reset("ghost")
    assert "ghost" not in engine._locks

    engine.adapt_personality("u1", {}, None, [])
    assert "u1" in engine._locks


def test_reset_returns_to_unadapted(engine: PersonalityEngine):
    engine.adapt_personality("u1", {"feedbackStyle": "direct"}, {"trustLevel": 90}, [])
    engine.reset("u1")
    assert engine.adaptation_state("u1") == AdaptationState.UNADAPTED
    assert engine.get_adapted_personality("u1") == engine.base_profile


def test_traits_from_lookup_tables(engine: PersonalityEngine):
    traits = engine.get_personality_traits(make_profile(), {})

    assert traits.supportiveness == 90
    assert traits.directness == 30
    assert traits.analytical_depth == 40
    assert traits.creativity == 60
    assert traits.patience == 70


def test_traits_unknown_tag_defaults_to_fifty(engine: PersonalityEngine):
    traits = engine.get_personality_traits(make_profile(coaching_approach="supportive"))
    assert traits.patience == 50


def test_traits_context_nudges(engine: PersonalityEngine):
    profile = make_profile(communication_style="analytical", decision_style="data-driven")
    traits = engine.get_personality_traits(
        profile, {"urgency": "high", "taskType": "analysis"}
    )

    assert traits.supportiveness == 80
    assert traits.patience == 85
    assert traits.directness == 85
    assert traits.analytical_depth == 100


def test_traits_brainstorm_boost(engine: PersonalityEngine):
    traits = engine.get_personality_traits(make_profile(), SituationContext(task_type="brainstorm"))
    assert traits.creativity == 85


@pytest.mark.parametrize(
    "context",
    [
        {},
        {"emotionalState": "stressed"},
        {"urgency": "high", "taskType": "analysis"},
        {"emotionalState": "stressed", "urgency": "high", "taskType": "brainstorm"},
    ],
)
@pytest.mark.parametrize("style", ["direct", "supportive", "analytical", "creative"])
def test_traits_clamped(engine: PersonalityEngine, context, style):
    profile = make_profile(
        communication_style=style, decision_style="data-driven", coaching_approach="nurturing"
    )
    traits = engine.get_personality_traits(profile, context)
    for value in vars(traits).values():
        assert 0 <= value <= 100


def test_response_style_baseline(engine: PersonalityEngine):
    style = engine.get_response_style(make_profile())

    assert style.tone == "warm"
    assert style.directness == pytest.approx(0.3)
    assert style.supportiveness == pytest.approx(0.6)
    assert style.analytical_depth == pytest.approx(0.4)
    assert style.personal_touch == pytest.approx(0.8)
    assert style.pacing == "moderate"


def test_response_style_stressed(engine: PersonalityEngine):
    style = engine.get_response_style(
        make_profile(coaching_approach="nurturing"), {"emotionalState": "stressed"}
    )

    assert style.tone == "supportive"
    assert style.directness == 0.0
    assert style.supportiveness == 1.0
    assert style.pacing == "careful"


def test_response_style_urgent_analysis(engine: PersonalityEngine):
    profile = make_profile(communication_style="direct", decision_style="data-driven", energy_level="high")
    style = engine.get_response_style(
        profile, {"urgency": "high", "taskType": "analysis", "relationshipStrength": "high"}
    )

    assert style.tone == "professional"
    assert style.directness == 1.0
    assert style.analytical_depth == pytest.approx(1.0)
    assert style.personal_touch == pytest.approx(0.3)
    assert style.supportiveness == pytest.approx(0.7)
    assert style.pacing == "fast"


def test_response_style_energetic(engine: PersonalityEngine):
    style = engine.get_response_style(make_profile(communication_style="creative", energy_level="high"))
    assert style.tone == "energetic"
    assert style.pacing == "energetic"


def test_from_settings():
    from attune.core.config import Settings

    settings = Settings(_env_file=None, base_communication_style="analytical")
    engine = PersonalityEngine.from_settings(settings)
    assert engine.base_profile.communication_style == "analytical"
    assert engine.base_profile.adaptation_level == 70
