"""Shared enumerations used across the workspace package."""

from __future__ import annotations

from enum import StrEnum

# -- VCS ---------------------------------------------------------------------


class VCSType(StrEnum):
    """Version control system detected for a workspace root."""

    NONE = "none"
    GIT = "git"
    MERCURIAL = "mercurial"
