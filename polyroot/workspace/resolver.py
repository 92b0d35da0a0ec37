"""Path resolution across workspace roots.

Turns a user- or tool-supplied path into a ``ResolvedPath`` (absolute path,
owning root, path relative to that root).

Resolution rules:

1. Explicit workspace hint (``@name:path``) -- resolve against that root;
   unknown names are an error.
2. Absolute path -- the innermost root containing it; paths outside every
   root fall back to the primary root.
3. Relative path -- the primary root (``resolve_path``), or the root(s)
   where the path actually exists (``resolve_path_with_disambiguation``).

Filesystem absence is never an error: the agent must be able to resolve
paths to files it is about to create.  Only configuration problems (no
roots, unknown hint) raise.
"""

from __future__ import annotations

import os

from polyroot.workspace.manager import WorkspaceManager, WorkspaceNotFoundError
from polyroot.workspace.models.workspace import ResolvedPath, WorkspaceRoot

HINT_PREFIX = "@"
HINT_SEPARATOR = ":"


class NoWorkspaceRootsError(LookupError):
    """The manager has no roots to resolve against."""

    def __init__(self) -> None:
        super().__init__("no workspace roots available")


# ---------------------------------------------------------------------------
# Hint grammar
# ---------------------------------------------------------------------------


def parse_workspace_hint(text: str) -> tuple[str | None, str]:
    """Split ``@name:path`` into ``(name, path)``.

    Input without a leading ``@`` or without a ``:`` after it is returned
    whole as an ordinary path with no hint.  Missing a hint is preferred to
    misreading a literal path.
    """
    if not text.startswith(HINT_PREFIX):
        return None, text
    name, sep, path = text[len(HINT_PREFIX) :].partition(HINT_SEPARATOR)
    if not sep:
        return None, text
    return name, path


def format_path_with_hint(workspace_name: str, path: str) -> str:
    return f"{HINT_PREFIX}{workspace_name}{HINT_SEPARATOR}{path}"


def _join(root: WorkspaceRoot, relative_path: str) -> str:
    return os.path.normpath(os.path.join(root.path, relative_path))


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class PathResolver:
    """Stateless facade over a ``WorkspaceManager``.

    Every call reads the manager's current roots; nothing is cached.
    """

    def __init__(self, manager: WorkspaceManager) -> None:
        self.manager = manager

    def _primary(self) -> WorkspaceRoot:
        primary = self.manager.get_primary_root()
        if primary is None:
            raise NoWorkspaceRootsError
        return primary

    def _anchored(self, path: str, root: WorkspaceRoot) -> ResolvedPath:
        """Resolve *path* against *root* (absolute paths are kept as given)."""
        if os.path.isabs(path):
            return ResolvedPath(
                absolute_path=os.path.normpath(path),
                root=root,
                relative_path=self.manager.get_relative_path_from_root(path, root),
            )
        return ResolvedPath(absolute_path=_join(root, path), root=root, relative_path=path)

    # -- Resolution ------------------------------------------------------------

    def resolve_path(self, path: str | os.PathLike[str], hint: str | None = None) -> ResolvedPath:
        """Resolve *path*, optionally against the workspace named *hint*.

        Raises
        ------
        WorkspaceNotFoundError:
            *hint* names no configured workspace.
        NoWorkspaceRootsError:
            The manager has no roots.
        """
        path = os.fspath(path)
        if hint is not None:
            return self._resolve_with_hint(path, hint)

        if os.path.isabs(path):
            root = self.manager.resolve_path_to_root(path)
            # Foreign absolute paths default to the primary workspace.
            return self._anchored(path, root if root is not None else self._primary())

        return self._anchored(path, self._primary())

    def _resolve_with_hint(self, path: str, hint: str) -> ResolvedPath:
        root = self.manager.get_root_by_name(hint)
        if root is None:
            raise WorkspaceNotFoundError(hint)
        return self._anchored(path, root)

    def resolve_path_string(self, text: str) -> ResolvedPath:
        """``resolve_path`` for input that may carry an ``@name:`` hint."""
        hint, path = parse_workspace_hint(text)
        return self.resolve_path(path, hint)

    def get_workspace_for_path(self, path: str | os.PathLike[str]) -> str:
        """Name of the workspace containing *path*; ``""`` if none does.

        Relative paths are anchored to the primary workspace first.
        """
        path = os.fspath(path)
        if not os.path.isabs(path):
            primary = self.manager.get_primary_root()
            if primary is None:
                return ""
            path = _join(primary, path)

        root = self.manager.resolve_path_to_root(path)
        return root.name if root is not None else ""

    # -- Disambiguation --------------------------------------------------------

    def _existing_in(self, relative_path: str) -> list[tuple[int, WorkspaceRoot]]:
        """``(index, root)`` for every root where *relative_path* exists, in registration order."""
        return [
            (i, root) for i, root in enumerate(self.manager.get_roots()) if os.path.exists(_join(root, relative_path))
        ]

    def disambiguate_path(self, relative_path: str) -> list[str]:
        """Names of the workspaces in which *relative_path* exists, in registration order."""
        return [root.name for _, root in self._existing_in(relative_path)]

    def resolve_path_with_disambiguation(self, relative_path: str | os.PathLike[str]) -> ResolvedPath:
        """Resolve a relative path to the workspace that actually contains it.

        - absolute input: plain ``resolve_path``
        - no workspace has it: primary (the file may be about to be created)
        - exactly one has it: that one
        - several have it: primary if among them, else the first registered
        """
        relative_path = os.fspath(relative_path)
        if os.path.isabs(relative_path):
            return self.resolve_path(relative_path)

        matches = self._existing_in(relative_path)
        if not matches:
            return self._anchored(relative_path, self._primary())

        primary_index = self.manager.get_primary_index()
        for index, root in matches:
            if index == primary_index:
                return self._anchored(relative_path, root)

        _, first = matches[0]
        return self._anchored(relative_path, first)

    def file_exists(self, path: str | os.PathLike[str]) -> bool:
        """True if *path* exists once resolved with disambiguation."""
        try:
            resolved = self.resolve_path_with_disambiguation(path)
        except NoWorkspaceRootsError:
            return False
        return os.path.exists(resolved.absolute_path)
