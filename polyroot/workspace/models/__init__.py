"""Data models for the workspace package."""

from polyroot.workspace.models.config import CURRENT_CONFIG_VERSION, Preferences, WorkspaceConfig
from polyroot.workspace.models.enums import VCSType
from polyroot.workspace.models.workspace import (
    EnvironmentContext,
    ResolvedPath,
    WorkspaceContext,
    WorkspaceMetadata,
    WorkspaceRoot,
    WorkspaceState,
)

__all__ = [
    # Config
    "CURRENT_CONFIG_VERSION",
    # LLM context
    "EnvironmentContext",
    "Preferences",
    "ResolvedPath",
    "VCSType",
    "WorkspaceConfig",
    "WorkspaceContext",
    "WorkspaceMetadata",
    # Roots
    "WorkspaceRoot",
    "WorkspaceState",
]
