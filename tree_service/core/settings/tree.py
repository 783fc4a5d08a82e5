"""Tree storage settings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_tree_yaml_source

RootPolicyName = Literal["virtual", "stored"]


class TreeSettings(BaseSettings):
    """Root convention and write behaviour of the CMS tree.

    Environment variables use TREE_ prefix.
    Example: TREE_ROOT_POLICY=stored, TREE_WRITE_RETRY_ATTEMPTS=5

    The catalog tree always uses a stored root (its schema seeds a sentinel
    row); root_policy only selects the convention for the CMS tree.
    """

    root_policy: RootPolicyName = Field(
        default="virtual",
        description="'virtual': the root is a reserved id with no node row. "
        "'stored': the root is a sentinel row with path '/'.",
    )
    virtual_root_id: int = Field(
        default=0,
        description="Reserved root id used by the virtual root convention.",
    )
    sentinel_id: int = Field(
        default=1,
        ge=1,
        description="Id of the stored root sentinel row.",
    )

    write_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Attempts for a value write that lost a concurrent path-creation race.",
    )
    write_retry_delay: float = Field(
        default=0.05,
        ge=0.0,
        le=10.0,
        description="Initial backoff (seconds) between write attempts.",
    )

    provision_on_startup: bool = Field(
        default=True,
        description="Create missing tree tables and seed root sentinels during init.",
    )

    model_config = SettingsConfigDict(
        env_prefix="TREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        """Customize settings source precedence: init > yaml > env > dotenv > secrets."""
        return (
            init_settings,
            create_tree_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def _check_root_ids(self) -> TreeSettings:
        # Auto-increment ids start at 1, so a virtual root id there would
        # collide with the first stored node.
        if self.virtual_root_id > 0:
            raise ValueError("virtual_root_id must be 0 or negative")
        return self
