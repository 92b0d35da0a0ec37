"""Workspace-aware path handling for agent file tools.

File tools (read, write, list) accept paths in three shapes:

- ``@workspace:path/to/file`` -- an explicit workspace
- ``/absolute/path``          -- used as given
- ``path/to/file``            -- the workspace where it exists, else primary
"""

from __future__ import annotations

import os

from polyroot.workspace.resolver import HINT_PREFIX, PathResolver, format_path_with_hint


class WorkspaceTools:
    """Thin adapter between tool inputs and a ``PathResolver``.

    With no resolver, paths pass through untouched (single-directory agents).
    """

    def __init__(self, resolver: PathResolver | None = None) -> None:
        self.resolver = resolver

    def resolve_path(self, path: str) -> str:
        """Absolute path for a tool argument.

        Raises ``WorkspaceNotFoundError`` for an unknown hint and
        ``NoWorkspaceRootsError`` when the manager has no roots.
        """
        if self.resolver is None:
            return path

        if path.startswith(HINT_PREFIX):
            return self.resolver.resolve_path_string(path).absolute_path

        if os.path.isabs(path):
            return path

        return self.resolver.resolve_path_with_disambiguation(path).absolute_path

    def format_path_with_hint(self, absolute_path: str) -> str:
        """``@name:absolute_path`` for paths inside a workspace, else unchanged."""
        if self.resolver is None:
            return absolute_path

        name = self.resolver.get_workspace_for_path(absolute_path)
        if not name:
            return absolute_path
        return format_path_with_hint(name, absolute_path)
