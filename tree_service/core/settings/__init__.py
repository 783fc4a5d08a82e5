"""Modular Pydantic Settings v2 configuration.

One frozen settings model per domain (database, tree, logging), loaded
through LRU-cached loaders:

    from tree_service.core.settings import get_tree_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. YAML/conf.d files (conf/<domain>.yaml, conf/<domain>.d/*.yaml)
    3. Environment variables (DB_, TREE_, LOG_)
    4. .env file
    5. secrets_dir
"""

from __future__ import annotations

from .database import DatabaseSettings
from .loader import (
    clear_settings_cache,
    get_db_settings,
    get_logging_settings,
    get_tree_settings,
)
from .logs import LoggingSettings
from .tree import TreeSettings
from .unified import Settings, get_settings

__all__ = [
    "DatabaseSettings",
    "LoggingSettings",
    "Settings",
    "TreeSettings",
    "clear_settings_cache",
    "get_db_settings",
    "get_logging_settings",
    "get_settings",
    "get_tree_settings",
]
