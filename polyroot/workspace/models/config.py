"""Persistent workspace configuration models (``.workspace.json``)."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator

from polyroot.workspace.models.workspace import WorkspaceState

CURRENT_CONFIG_VERSION = 1


class Preferences(BaseModel):
    """User preferences for workspace behavior."""

    auto_detect_workspaces: bool = Field(
        default=False,
        validation_alias=AliasChoices("autoDetectWorkspaces", "auto_detect_workspaces"),
        serialization_alias="autoDetectWorkspaces",
    )
    max_workspaces: int = Field(
        default=10,
        validation_alias=AliasChoices("maxWorkspaces", "max_workspaces"),
        serialization_alias="maxWorkspaces",
        description="Upper bound on auto-detected roots",
    )
    prefer_vcs_roots: bool = Field(
        default=True,
        validation_alias=AliasChoices("preferVCSRoots", "prefer_vcs_roots"),
        serialization_alias="preferVCSRoots",
    )
    include_hidden: bool = Field(
        default=False,
        validation_alias=AliasChoices("includeHidden", "include_hidden"),
        serialization_alias="includeHidden",
    )


class WorkspaceConfig(WorkspaceState):
    """Manager state plus format version and preferences.

    ``preferences`` is ``None`` when the file omits it; loaders substitute
    defaults.
    """

    version: int = 0
    preferences: Preferences | None = None

    @field_validator("version", mode="before")
    @classmethod
    def _null_version(cls, value: Any) -> Any:
        return 0 if value is None else value
