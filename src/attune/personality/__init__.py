"""
Personality module - base profile, per-user adaptation, response shaping.

Components:
- profile: Profile, traits, response style and context structures
- engine: PersonalityEngine (adaptation, traits, response style)
- consistency: Checks recent replies against the expected style
"""

from attune.personality.engine import AdaptationState, PersonalityEngine
from attune.personality.profile import PersonalityProfile, SituationContext

__all__ = ["AdaptationState", "PersonalityEngine", "PersonalityProfile", "SituationContext"]
