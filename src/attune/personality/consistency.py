"""Consistency of recent replies against the style a profile calls for.

Observed style comes from an explicit ``style`` mapping on the response
when the caller has one, otherwise from phrase markers in the text.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from attune.personality.profile import (
    ConsistencyReport,
    Deviation,
    PersonalityProfile,
    ResponseStyle,
)

DIMENSIONS = ("directness", "supportiveness")
DEVIATION_THRESHOLD = 0.35
LOW_SCORE_THRESHOLD = 0.7
MARKER_WEIGHT = 0.1

ASSERTIVE_MARKERS = (
    "you need to", "you should", "you must", "make sure", "clearly",
    "the reality is", "definitely", "do this",
)
HEDGE_MARKERS = (
    "might", "perhaps", "maybe", "possibly", "it seems", "consider", "could",
)
EMPATHY_MARKERS = (
    "i understand", "that sounds", "it's okay", "i hear you", "don't worry",
    "take your time", "proud of you", "great job", "you've got this",
)
BLUNT_MARKERS = (
    "wrong", "no excuses", "won't work", "stop ", "bluntly",
)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _count(text: str, markers: Sequence[str]) -> int:
    return sum(text.count(marker) for marker in markers)


def response_text(response: Any) -> str:
    if isinstance(response, Mapping):
        return str(response.get("content") or response.get("text") or "")
    return str(response)


def observe_style(response: Any) -> dict[str, float]:
    """Estimate directness/supportiveness of one reply on a 0-1 scale."""
    text = response_text(response).lower()
    observed = {
        "directness": _clamp(
            0.5
            + MARKER_WEIGHT * _count(text, ASSERTIVE_MARKERS)
            - MARKER_WEIGHT * _count(text, HEDGE_MARKERS)
        ),
        "supportiveness": _clamp(
            0.5
            + MARKER_WEIGHT * _count(text, EMPATHY_MARKERS)
            - MARKER_WEIGHT * _count(text, BLUNT_MARKERS)
        ),
    }

    if isinstance(response, Mapping) and isinstance(response.get("style"), Mapping):
        for dimension in DIMENSIONS:
            if dimension in response["style"]:
                observed[dimension] = _clamp(float(response["style"][dimension]))
    return observed


def _style_source(profile: PersonalityProfile, dimension: str) -> str:
    if dimension == "directness":
        return f"{profile.communication_style} communication style"
    return f"{profile.coaching_approach} coaching approach"


def recommendations_for(
    profile: PersonalityProfile, score: float, deviations: list[Deviation]
) -> list[str]:
    recommendations = []
    if score < LOW_SCORE_THRESHOLD:
        recommendations.append("Focus on maintaining consistent communication style")
    if deviations:
        recommendations.append("Address identified personality deviations")

    seen = set()
    for deviation in deviations:
        verb = "Increase" if deviation.observed < deviation.expected else "Reduce"
        line = f"{verb} {deviation.dimension} to match the {_style_source(profile, deviation.dimension)}"
        if line not in seen:
            seen.add(line)
            recommendations.append(line)
    return recommendations


def check_consistency(
    profile: PersonalityProfile,
    expected: ResponseStyle,
    recent_responses: Sequence[Any],
) -> ConsistencyReport:
    if not recent_responses:
        return ConsistencyReport(consistency_score=1.0)

    gaps: list[float] = []
    deviations: list[Deviation] = []
    for index, response in enumerate(recent_responses):
        observed = observe_style(response)
        for dimension in DIMENSIONS:
            target = getattr(expected, dimension)
            gap = abs(observed[dimension] - target)
            gaps.append(gap)
            if gap > DEVIATION_THRESHOLD:
                deviations.append(
                    Deviation(
                        response_index=index,
                        dimension=dimension,
                        expected=target,
                        observed=observed[dimension],
                    )
                )

    score = round(1.0 - sum(gaps) / len(gaps), 3)
    return ConsistencyReport(
        consistency_score=score,
        deviations=deviations,
        recommendations=recommendations_for(profile, score, deviations),
    )
