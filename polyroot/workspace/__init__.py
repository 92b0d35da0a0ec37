"""Multi-root workspace management: roots, VCS metadata and path resolution."""

from polyroot.workspace.manager import (
    InvalidStateError,
    InvalidWorkspaceIndexError,
    WorkspaceManager,
    WorkspaceNotFoundError,
    WorkspaceStateError,
)
from polyroot.workspace.models import (
    Preferences,
    ResolvedPath,
    VCSType,
    WorkspaceConfig,
    WorkspaceContext,
    WorkspaceRoot,
)
from polyroot.workspace.resolver import (
    NoWorkspaceRootsError,
    PathResolver,
    format_path_with_hint,
    parse_workspace_hint,
)
from polyroot.workspace.vcs import VCSDetector, VCSProbeError

__all__ = [
    "InvalidStateError",
    "InvalidWorkspaceIndexError",
    "NoWorkspaceRootsError",
    "PathResolver",
    "Preferences",
    "ResolvedPath",
    "VCSDetector",
    "VCSProbeError",
    "VCSType",
    "WorkspaceConfig",
    "WorkspaceContext",
    "WorkspaceManager",
    "WorkspaceNotFoundError",
    "WorkspaceRoot",
    "WorkspaceStateError",
    "format_path_with_hint",
    "parse_workspace_hint",
]
