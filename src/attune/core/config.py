"""
Configuration management.

Loads settings from environment variables and .env file.
Prefix: ATTUNE_
"""

from datetime import timedelta
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from attune.personality.profile import PersonalityProfile


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ATTUNE_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Memory tiers
    conversation_capacity: int = Field(
        default=100, ge=1, description="Max entries kept in conversational memory per user"
    )
    long_term_capacity: int = Field(
        default=500, ge=1, description="Max entries kept in long-term memory per user"
    )
    recent_window_days: int = Field(
        default=7, ge=0, description="Age under which a memory earns the recency bonus"
    )

    # Base personality
    base_communication_style: str = Field(default="supportive", description="direct | supportive | analytical | creative")
    base_decision_style: str = Field(default="collaborative", description="data-driven | intuitive | collaborative | decisive")
    base_coaching_approach: str = Field(default="adaptive", description="challenging | nurturing | structured | adaptive")
    base_energy_level: str = Field(default="moderate", description="calm | moderate | high | variable")
    base_adaptation_level: int = Field(
        default=70, ge=0, le=100, description="How far adapted profiles may drift from the base"
    )

    # Snapshot storage
    data_dir: Path = Field(default=Path("data"), description="Data storage directory")
    db_name: str = Field(default="attune.db", description="SQLite snapshot database name")

    log_level: str = Field(default="INFO", description="Package log level")

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name

    @property
    def recent_window(self) -> timedelta:
        return timedelta(days=self.recent_window_days)

    def base_profile(self) -> PersonalityProfile:
        """Build the base personality profile from configured tags."""
        return PersonalityProfile(
            communication_style=self.base_communication_style,
            decision_style=self.base_decision_style,
            coaching_approach=self.base_coaching_approach,
            energy_level=self.base_energy_level,
            adaptation_level=self.base_adaptation_level,
        )


def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()
