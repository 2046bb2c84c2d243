"""
Core module - configuration, logging, shared typing.

Components:
- config: Settings management via pydantic-settings
- logging: Structured logging setup
- typing: Shared aliases for plain-data payloads
"""
