"""User preference structure and extraction from preference memories."""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from attune.core.logging import get_logger
from attune.core.typing import JSONDict

logger = get_logger("memory.preferences")

# camelCase keys seen in structured preference payloads
_KEY_ALIASES = {
    "communicationStyle": "communication_style",
    "feedbackStyle": "feedback_style",
    "meetingPreference": "meeting_preference",
    "challengeLevel": "challenge_level",
    "avoidTopics": "avoid_topics",
    "preferredTimes": "preferred_times",
    "workingStyle": "working_style",
}

# (phrase, field, value) used when content is free text
_TEXT_RULES = [
    ("prefer direct", "feedback_style", "direct"),
    ("prefer gentle", "feedback_style", "gentle"),
    ("challenge me", "challenge_level", "high"),
    ("be supportive", "challenge_level", "low"),
]


@dataclass
class UserPreferences:
    """Preferences inferred from a user's preference memories.

    Feeds personality adaptation: ``feedback_style``, ``challenge_level``
    and ``meeting_preference`` drive the style targets.
    """

    communication_style: str = "balanced"
    feedback_style: str = "direct"  # direct, gentle, data-focused
    meeting_preference: str = "structured"  # structured, casual, mixed
    challenge_level: str = "moderate"  # low, moderate, high
    topics: list[str] = field(default_factory=list)
    avoid_topics: list[str] = field(default_factory=list)
    preferred_times: list[str] = field(default_factory=list)
    working_style: str = "collaborative"

    # Unrecognised keys from structured payloads
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> JSONDict:
        """Serialize preferences to dictionary."""
        return {
            "communication_style": self.communication_style,
            "feedback_style": self.feedback_style,
            "meeting_preference": self.meeting_preference,
            "challenge_level": self.challenge_level,
            "topics": list(self.topics),
            "avoid_topics": list(self.avoid_topics),
            "preferred_times": list(self.preferred_times),
            "working_style": self.working_style,
            "extra": dict(self.extra),
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "UserPreferences":
        """Build preferences from a snake_case or camelCase mapping."""
        prefs = cls()
        prefs.update_fields(**dict(data))
        return prefs

    def update_fields(self, **values: Any) -> None:
        """Merge values; unknown keys land in ``extra``."""
        known = {f.name for f in fields(self)} - {"extra"}
        for key, value in values.items():
            name = _KEY_ALIASES.get(key, key)
            if name == "extra" and isinstance(value, Mapping):
                self.extra.update(value)
            elif name in known:
                setattr(self, name, value)
            else:
                self.extra[key] = value

    def apply_text(self, content: str) -> None:
        """Best-effort keyword extraction from free-text preferences."""
        lowered = content.lower()
        for phrase, name, value in _TEXT_RULES:
            if phrase in lowered:
                setattr(self, name, value)

    def apply_memory(self, content: str) -> None:
        """Merge one preference memory, structured or free text."""
        try:
            payload = json.loads(content)
        except (TypeError, ValueError):
            self.apply_text(content)
            return

        if isinstance(payload, Mapping):
            self.update_fields(**payload)
        else:
            logger.warning(f"Preference payload is not an object, using text rules: {content[:60]!r}")
            self.apply_text(content)
