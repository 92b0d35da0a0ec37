"""Multi-root workspace manager.

Owns an ordered list of ``WorkspaceRoot`` entries plus the index of the
primary root.  Supports both the single-root mode (backward compatible with
callers that assume one working directory) and multi-root workspaces such as
monorepos with separate ``frontend`` / ``backend`` checkouts.

Concurrency: ``roots`` and ``primary_index`` are guarded by a re-entrant lock,
so a background commit-hash refresh can run alongside a foreground primary
switch.  Every accessor returns deep copies taken under the lock; callers can
never mutate manager state through a returned root.
"""

from __future__ import annotations

import os
import threading
from typing import TYPE_CHECKING

from anyio import to_thread
from loguru import logger
from pydantic import ValidationError

from polyroot.workspace.models.enums import VCSType
from polyroot.workspace.models.workspace import (
    EnvironmentContext,
    WorkspaceContext,
    WorkspaceMetadata,
    WorkspaceRoot,
    WorkspaceState,
    normalize_root_path,
)
from polyroot.workspace.vcs import VCSDetector, VCSProbeError, default_detector

if TYPE_CHECKING:
    from collections.abc import Iterable

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class WorkspaceNotFoundError(LookupError):
    """No workspace matches the given name, path or identifier."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"workspace not found: {identifier}")


class InvalidWorkspaceIndexError(IndexError):
    """Primary index outside the configured roots."""

    def __init__(self, index: int, count: int) -> None:
        super().__init__(f"invalid workspace index: {index} (have {count} roots)")


class InvalidStateError(RuntimeError):
    """The manager does not satisfy a caller's structural assumption."""


class WorkspaceStateError(ValueError):
    """Persisted manager state could not be parsed."""


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def path_has_prefix(path: str, prefix: str) -> bool:
    """True if *prefix* equals *path* or contains it at a separator boundary."""
    path = os.path.normpath(path)
    prefix = os.path.normpath(prefix)
    if path == prefix:
        return True
    if not prefix.endswith(os.sep):
        prefix += os.sep
    return path.startswith(prefix)


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


class WorkspaceManager:
    """Registry of workspace roots with a primary selection.

    The root set is fixed at construction; afterwards only the primary index
    and Git commit hashes change.  Build a new manager to change the roots.
    """

    def __init__(
        self,
        roots: Iterable[WorkspaceRoot] | None = None,
        primary_index: int = 0,
        *,
        detector: VCSDetector | None = None,
    ) -> None:
        self._roots: list[WorkspaceRoot] = [root.snapshot() for root in roots or ()]
        if primary_index < 0 or primary_index >= len(self._roots):
            primary_index = 0
        self._primary_index = primary_index
        self._detector = detector
        self._lock = threading.RLock()

    @property
    def detector(self) -> VCSDetector:
        if self._detector is None:
            self._detector = default_detector()
        return self._detector

    # -- Construction ----------------------------------------------------------

    @classmethod
    def from_single_directory(
        cls,
        cwd: str | os.PathLike[str] | None = None,
        *,
        detector: VCSDetector | None = None,
    ) -> WorkspaceManager:
        """Backward-compatible single-root manager for *cwd* (default: process cwd).

        VCS detection and Git metadata are best-effort; this never fails
        because of version control.
        """
        detector = detector or default_detector()
        root = detector.probe_root(os.getcwd() if cwd is None else cwd)
        logger.debug("Single workspace {} (vcs={})", root.path, root.vcs)
        return cls([root], 0, detector=detector)

    @classmethod
    def from_json(cls, data: str | bytes, *, detector: VCSDetector | None = None) -> WorkspaceManager:
        """Restore a manager from ``to_json`` output.

        The primary index is clamped exactly like the constructor, guarding
        against stale or hand-edited state.  Raises ``WorkspaceStateError``
        for malformed input.
        """
        try:
            state = WorkspaceState.model_validate_json(data)
        except ValidationError as exc:
            msg = f"failed to parse workspace state: {exc}"
            raise WorkspaceStateError(msg) from exc
        return cls(state.roots, state.primary_index, detector=detector)

    # -- Query -----------------------------------------------------------------

    def get_roots(self) -> list[WorkspaceRoot]:
        with self._lock:
            return [root.snapshot() for root in self._roots]

    def get_primary_root(self) -> WorkspaceRoot | None:
        """The primary root, or ``None`` when no roots are configured."""
        with self._lock:
            if not self._roots:
                return None
            return self._roots[self._primary_index].snapshot()

    def get_primary_index(self) -> int:
        with self._lock:
            return self._primary_index

    def get_root_by_name(self, name: str) -> WorkspaceRoot | None:
        """First root (registration order) whose name is *name*."""
        with self._lock:
            for root in self._roots:
                if root.name == name:
                    return root.snapshot()
        return None

    def get_root_by_index(self, index: int) -> WorkspaceRoot | None:
        with self._lock:
            if index < 0 or index >= len(self._roots):
                return None
            return self._roots[index].snapshot()

    def is_single_root(self) -> bool:
        with self._lock:
            return len(self._roots) == 1

    def get_single_root(self) -> WorkspaceRoot:
        """The only root.  Raises ``InvalidStateError`` unless exactly one exists."""
        with self._lock:
            if len(self._roots) != 1:
                msg = f"expected single root, but found {len(self._roots)} roots"
                raise InvalidStateError(msg)
            return self._roots[0].snapshot()

    # -- Primary selection -----------------------------------------------------

    def set_primary_index(self, index: int) -> None:
        with self._lock:
            if index < 0 or index >= len(self._roots):
                raise InvalidWorkspaceIndexError(index, len(self._roots))
            self._primary_index = index

    def set_primary_by_name(self, name: str) -> None:
        with self._lock:
            for i, root in enumerate(self._roots):
                if root.name == name:
                    self._primary_index = i
                    return
        raise WorkspaceNotFoundError(name)

    def set_primary_by_path(self, path: str | os.PathLike[str]) -> None:
        target = normalize_root_path(path)
        with self._lock:
            for i, root in enumerate(self._roots):
                if root.path == target:
                    self._primary_index = i
                    return
        raise WorkspaceNotFoundError(os.fspath(path))

    def switch_workspace(self, identifier: str) -> WorkspaceRoot:
        """Make the workspace named (or located at) *identifier* primary.

        Name matches win over path matches.  Returns the new primary root.
        """
        with self._lock:
            try:
                self.set_primary_by_name(identifier)
            except WorkspaceNotFoundError:
                try:
                    self.set_primary_by_path(identifier)
                except WorkspaceNotFoundError:
                    raise WorkspaceNotFoundError(identifier) from None
            logger.info("Switched primary workspace to {}", self._roots[self._primary_index].name)
            return self._roots[self._primary_index].snapshot()

    # -- Path containment ------------------------------------------------------

    def resolve_path_to_root(self, absolute_path: str | os.PathLike[str]) -> WorkspaceRoot | None:
        """The innermost root containing *absolute_path*, or ``None``.

        Roots are tried longest path first, so a nested root shadows its
        parent regardless of registration order.
        """
        path = os.fspath(absolute_path)
        with self._lock:
            by_length = sorted(self._roots, key=lambda root: len(root.path), reverse=True)
        for root in by_length:
            if path_has_prefix(path, root.path):
                return root.snapshot()
        return None

    def is_path_in_workspace(self, absolute_path: str | os.PathLike[str]) -> bool:
        return self.resolve_path_to_root(absolute_path) is not None

    def get_relative_path_from_root(
        self,
        absolute_path: str | os.PathLike[str],
        root: WorkspaceRoot | None = None,
    ) -> str:
        """Path of *absolute_path* relative to *root* (default: its containing root).

        Falls back to returning *absolute_path* unchanged when no root applies
        or the relative path cannot be computed.
        """
        path = os.fspath(absolute_path)
        target = root if root is not None else self.resolve_path_to_root(path)
        if target is None:
            return path
        try:
            return os.path.relpath(path, target.path)
        except ValueError:
            # Different drives on Windows.
            return path

    # -- Context ---------------------------------------------------------------

    def create_context(self, current_root: WorkspaceRoot | None = None) -> WorkspaceContext:
        """Snapshot for tool execution; ``current_root`` defaults to the primary."""
        with self._lock:
            roots = self.get_roots()
            primary = self.get_primary_root()
        return WorkspaceContext(
            roots=roots,
            primary_root=primary,
            current_root=current_root.snapshot() if current_root is not None else primary,
        )

    def build_environment_context(self) -> str:
        """Indented JSON describing every root, for LLM prompt injection.

        Empty string when no roots are configured.
        """
        roots = self.get_roots()
        if not roots:
            return ""

        context = EnvironmentContext()
        for root in roots:
            metadata = WorkspaceMetadata(hint=root.name)
            if root.vcs == VCSType.GIT:
                metadata.associated_remote_urls = root.remote_urls or None
                metadata.latest_git_commit_hash = root.commit_hash
            context.workspaces[root.path] = metadata

        return context.model_dump_json(by_alias=True, exclude_none=True, indent=2)

    def get_summary(self) -> str:
        with self._lock:
            roots = list(self._roots)
            primary_index = self._primary_index

        if not roots:
            return "No workspace roots configured"

        if len(roots) == 1:
            root = roots[0]
            summary = f"Single workspace: {root.name}"
            if root.vcs != VCSType.NONE:
                summary += f" ({root.vcs})"
            return summary

        others = [root.name for i, root in enumerate(roots) if i != primary_index]
        return (
            f"Multi-workspace ({len(roots)} roots)\n"
            f"Primary: {roots[primary_index].name}\n"
            f"Additional: {', '.join(others)}"
        )

    # -- VCS refresh -----------------------------------------------------------

    def update_commit_hashes(self) -> None:
        """Refresh commit hashes of Git roots.  Best-effort; never raises.

        Git runs against a snapshot outside the lock; results are applied
        afterwards by path so a concurrent reader never waits on a subprocess.
        """
        git_paths = [root.path for root in self.get_roots() if root.vcs == VCSType.GIT]
        if not git_paths:
            return

        hashes: dict[str, str] = {}
        for path in git_paths:
            try:
                hashes[path] = self.detector.commit_hash(path)
            except VCSProbeError as exc:
                logger.debug("Commit hash refresh skipped for {}: {}", path, exc)

        with self._lock:
            self._roots = [
                root.model_copy(update={"commit_hash": hashes[root.path]}) if root.path in hashes else root
                for root in self._roots
            ]

    async def aupdate_commit_hashes(self) -> None:
        """``update_commit_hashes`` in a worker thread."""
        await to_thread.run_sync(self.update_commit_hashes)

    # -- Persistence -----------------------------------------------------------

    def to_state(self) -> WorkspaceState:
        with self._lock:
            return WorkspaceState(roots=self.get_roots(), primary_index=self._primary_index)

    def to_json(self) -> str:
        """Serialize to ``{"roots": [...], "primaryIndex": n}``."""
        return self.to_state().dump_json()

    def __repr__(self) -> str:
        with self._lock:
            names = [root.name for root in self._roots]
            return f"WorkspaceManager(roots={names!r}, primary_index={self._primary_index})"
