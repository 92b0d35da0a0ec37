"""Workspace configuration loaded from POLYROOT_* environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class PolyrootSettings(BaseSettings):
    """Polyroot settings.

    All fields are read from environment variables with the ``POLYROOT_``
    prefix.  For example, ``POLYROOT_VCS_TIMEOUT=3`` maps to ``vcs_timeout``.

    Workspace roots themselves are **not** configured here -- they live in
    the per-project ``.workspace.json`` file (see ``workspace.config``).
    """

    model_config = SettingsConfigDict(
        env_prefix="POLYROOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- VCS probing -----------------------------------------------------------
    vcs_timeout: float = 10.0
    """Seconds a single ``git`` / ``hg`` invocation may run before it is killed."""

    # -- Workspace layout ------------------------------------------------------
    config_file_name: str = ".workspace.json"
    """Name of the per-directory workspace config file."""

    multi_workspace: bool = True
    """Use smart initialization (config, then detection) instead of single-directory mode."""


@lru_cache(maxsize=1)
def get_settings() -> PolyrootSettings:
    """Return a cached settings instance.

    Call ``get_settings.cache_clear()`` in tests to force a re-read after
    overriding env vars.
    """
    return PolyrootSettings()
