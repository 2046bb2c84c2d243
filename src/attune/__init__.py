"""
Attune - per-user tiered memory and personality adaptation for conversational agents.

Package structure:
- core: Configuration, logging, shared typing aliases
- memory: Tiered memory store, relevance ranking, preferences and snapshots
- personality: Base/adapted personality profiles and the adaptation engine
"""

__version__ = "0.1.0"
