"""Workspace data models.

A workspace root is a directory treated as an independent top-level project
boundary -- analogous to one folder of a VS Code multi-root workspace.  The
``WorkspaceManager`` owns an ordered list of roots; everything handed out is
a frozen snapshot, never a live reference.

Wire format follows the persisted ``.workspace.json`` layout (camelCase keys).
For input, PascalCase and snake_case spellings are accepted as well.
"""

from __future__ import annotations

import os
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from polyroot.workspace.models.enums import VCSType


def _wire(name: str, camel: str, pascal: str) -> dict[str, Any]:
    """Field kwargs accepting every known spelling, serializing as camelCase."""
    return {
        "validation_alias": AliasChoices(camel, pascal, name),
        "serialization_alias": camel,
    }


def normalize_root_path(path: str | os.PathLike[str]) -> str:
    """Absolute, normalized string form used for every stored root path."""
    return os.path.abspath(os.fspath(path))


# -- Roots -------------------------------------------------------------------


class WorkspaceRoot(BaseModel):
    """A single workspace directory and its best-effort VCS identity."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(**_wire("path", "path", "Path"))
    name: str = Field(default="", **_wire("name", "name", "Name"))
    vcs: VCSType = Field(default=VCSType.NONE, **_wire("vcs", "vcs", "VCS"))
    commit_hash: str | None = Field(default=None, **_wire("commit_hash", "commitHash", "CommitHash"))
    remote_urls: list[str] | None = Field(default=None, **_wire("remote_urls", "remoteUrls", "RemoteURLs"))

    @model_validator(mode="before")
    @classmethod
    def _default_name(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if any(data.get(key) for key in ("name", "Name")):
            return data
        raw = next((data[key] for key in ("path", "Path") if data.get(key)), None)
        if not isinstance(raw, (str, os.PathLike)):
            # Left to field validation to report.
            return data
        path = normalize_root_path(raw)
        return {**data, "name": os.path.basename(path) or path}

    @field_validator("path", mode="before")
    @classmethod
    def _normalize_path(cls, value: Any) -> Any:
        if isinstance(value, (str, os.PathLike)) and os.fspath(value):
            return normalize_root_path(value)
        return value

    @field_validator("vcs", mode="before")
    @classmethod
    def _vcs_or_none(cls, value: Any) -> Any:
        return VCSType.NONE if value in (None, "") else value

    @field_validator("remote_urls")
    @classmethod
    def _dedupe_urls(cls, value: list[str] | None) -> list[str] | None:
        if not value:
            return None
        return list(dict.fromkeys(value))

    def snapshot(self) -> WorkspaceRoot:
        """Deep value copy; mutating it never reaches the owner."""
        return self.model_copy(deep=True)


class ResolvedPath(BaseModel):
    """A path resolved against a specific workspace root."""

    model_config = ConfigDict(frozen=True)

    absolute_path: str
    root: WorkspaceRoot
    relative_path: str


class WorkspaceContext(BaseModel):
    """Workspace snapshot handed to tool execution."""

    roots: list[WorkspaceRoot] = Field(default_factory=list)
    primary_root: WorkspaceRoot | None = Field(default=None, serialization_alias="primaryRoot")
    current_root: WorkspaceRoot | None = Field(default=None, serialization_alias="currentRoot")


# -- LLM context -------------------------------------------------------------


class WorkspaceMetadata(BaseModel):
    """Per-workspace entry of the environment context."""

    hint: str
    associated_remote_urls: list[str] | None = Field(default=None, serialization_alias="associatedRemoteUrls")
    latest_git_commit_hash: str | None = Field(default=None, serialization_alias="latestGitCommitHash")


class EnvironmentContext(BaseModel):
    """Workspace environment injected into LLM prompts, keyed by absolute path."""

    workspaces: dict[str, WorkspaceMetadata] = Field(default_factory=dict)


# -- Persistence -------------------------------------------------------------


class WorkspaceState(BaseModel):
    """Serialized manager state: ``{"roots": [...], "primaryIndex": n}``."""

    roots: list[WorkspaceRoot] = Field(default_factory=list, **_wire("roots", "roots", "Roots"))
    primary_index: int = Field(default=0, **_wire("primary_index", "primaryIndex", "PrimaryIndex"))

    @field_validator("roots", mode="before")
    @classmethod
    def _null_roots(cls, value: Any) -> Any:
        return [] if value is None else value

    def dump_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
