"""Unified settings composition for convenient access.

    from tree_service.core.settings import get_settings

    settings = get_settings()
    print(settings.tree.root_policy)
    print(settings.db.sqlalchemy_url)

Each nested settings class still loads from its own prefix (DB_, TREE_,
LOG_). Code that needs a single domain should prefer the get_*_settings()
loaders.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .database import DatabaseSettings
from .logs import LoggingSettings
from .tree import TreeSettings


class Settings(BaseSettings):
    """Unified settings composing all domain settings."""

    model_config = SettingsConfigDict(
        frozen=True,
        extra="ignore",
    )

    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    tree: TreeSettings = Field(default_factory=TreeSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get unified settings instance (cached)."""
    return Settings()
