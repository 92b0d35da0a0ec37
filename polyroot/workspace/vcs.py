"""Version control detection and metadata probes.

Every probe shells out to ``git`` or ``hg`` in the target directory, bounded
by a timeout (the child is killed when it expires).  "Not a repository" is
the common case and is never an error for detection.  The metadata getters
raise ``VCSProbeError``, which callers are expected to swallow: VCS metadata
is advisory and must never block workspace construction.
"""

from __future__ import annotations

import os
import subprocess
from typing import TYPE_CHECKING

from loguru import logger

from polyroot.workspace.models.enums import VCSType
from polyroot.workspace.models.workspace import WorkspaceRoot, normalize_root_path
from polyroot.workspace.settings import PolyrootSettings, get_settings

if TYPE_CHECKING:
    from collections.abc import Sequence

DEFAULT_VCS_TIMEOUT = 10.0
"""Seconds; used when no settings are supplied."""


class VCSProbeError(RuntimeError):
    """A git / hg invocation failed, timed out, or the binary is missing."""

    def __init__(self, args: Sequence[str], cwd: str, reason: str) -> None:
        self.command = tuple(args)
        self.cwd = cwd
        super().__init__(f"{' '.join(args)} failed in {cwd}: {reason}")


# ---------------------------------------------------------------------------
# Subprocess helper
# ---------------------------------------------------------------------------


def _run(args: Sequence[str], cwd: str | os.PathLike[str], timeout: float) -> str:
    """Run a VCS command and return its stdout.  Raises ``VCSProbeError``."""
    cwd = os.fspath(cwd)
    try:
        result = subprocess.run(  # noqa: S603
            list(args),
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        raise VCSProbeError(args, cwd, f"timed out after {timeout}s") from None
    except OSError as exc:
        # Missing binary or missing / unreadable cwd.
        raise VCSProbeError(args, cwd, str(exc)) from None

    if result.returncode != 0:
        raise VCSProbeError(args, cwd, result.stderr.strip() or f"exit status {result.returncode}")
    return result.stdout


def _succeeds(args: Sequence[str], cwd: str | os.PathLike[str], timeout: float) -> bool:
    try:
        _run(args, cwd, timeout)
    except VCSProbeError:
        return False
    return True


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def is_git_repository(path: str | os.PathLike[str], *, timeout: float = DEFAULT_VCS_TIMEOUT) -> bool:
    return _succeeds(["git", "rev-parse", "--git-dir"], path, timeout)


def is_mercurial_repository(path: str | os.PathLike[str], *, timeout: float = DEFAULT_VCS_TIMEOUT) -> bool:
    return _succeeds(["hg", "root"], path, timeout)


def detect_vcs(path: str | os.PathLike[str], *, timeout: float = DEFAULT_VCS_TIMEOUT) -> VCSType:
    """Identify the VCS for a directory.  Git wins over Mercurial."""
    if is_git_repository(path, timeout=timeout):
        return VCSType.GIT
    if is_mercurial_repository(path, timeout=timeout):
        return VCSType.MERCURIAL
    return VCSType.NONE


# ---------------------------------------------------------------------------
# Git metadata
# ---------------------------------------------------------------------------


def get_git_commit_hash(path: str | os.PathLike[str], *, timeout: float = DEFAULT_VCS_TIMEOUT) -> str:
    return _run(["git", "rev-parse", "HEAD"], path, timeout).strip()


def get_git_branch(path: str | os.PathLike[str], *, timeout: float = DEFAULT_VCS_TIMEOUT) -> str:
    return _run(["git", "rev-parse", "--abbrev-ref", "HEAD"], path, timeout).strip()


def parse_git_remotes(output: str) -> list[str]:
    """Extract unique fetch URLs from ``git remote -v`` output, first-seen order.

    Each remote is listed twice (fetch and push); only ``(fetch)`` rows count.
    """
    urls: dict[str, None] = {}
    for line in output.splitlines():
        if "(fetch)" not in line:
            continue
        parts = line.split()
        if len(parts) >= 2:
            urls.setdefault(parts[1])
    return list(urls)


def get_git_remote_urls(path: str | os.PathLike[str], *, timeout: float = DEFAULT_VCS_TIMEOUT) -> list[str]:
    return parse_git_remotes(_run(["git", "remote", "-v"], path, timeout))


def get_git_status(path: str | os.PathLike[str], *, timeout: float = DEFAULT_VCS_TIMEOUT) -> str:
    """Porcelain status of the working tree (empty when clean)."""
    return _run(["git", "status", "--porcelain"], path, timeout).strip()


def is_git_clean(path: str | os.PathLike[str], *, timeout: float = DEFAULT_VCS_TIMEOUT) -> bool:
    return get_git_status(path, timeout=timeout) == ""


# ---------------------------------------------------------------------------
# Detector
# ---------------------------------------------------------------------------


class VCSDetector:
    """Bundles the probes with one timeout.

    The manager and the workspace detection take a detector instead of
    calling the module functions directly, so tests can substitute a fake.
    """

    def __init__(self, timeout: float = DEFAULT_VCS_TIMEOUT) -> None:
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: PolyrootSettings) -> VCSDetector:
        return cls(timeout=settings.vcs_timeout)

    def detect(self, path: str | os.PathLike[str]) -> VCSType:
        return detect_vcs(path, timeout=self.timeout)

    def commit_hash(self, path: str | os.PathLike[str]) -> str:
        return get_git_commit_hash(path, timeout=self.timeout)

    def branch(self, path: str | os.PathLike[str]) -> str:
        return get_git_branch(path, timeout=self.timeout)

    def remote_urls(self, path: str | os.PathLike[str]) -> list[str]:
        return get_git_remote_urls(path, timeout=self.timeout)

    def status(self, path: str | os.PathLike[str]) -> str:
        return get_git_status(path, timeout=self.timeout)

    def is_clean(self, path: str | os.PathLike[str]) -> bool:
        return is_git_clean(path, timeout=self.timeout)

    def probe_root(self, path: str | os.PathLike[str], name: str | None = None) -> WorkspaceRoot:
        """Build a ``WorkspaceRoot`` for *path* with best-effort VCS metadata.

        Git roots get their commit hash and remotes; failures leave the
        fields unset.  Never raises for VCS reasons.
        """
        abs_path = normalize_root_path(path)
        vcs = self.detect(abs_path)

        commit_hash: str | None = None
        remote_urls: list[str] | None = None
        if vcs == VCSType.GIT:
            try:
                commit_hash = self.commit_hash(abs_path)
            except VCSProbeError as exc:
                logger.debug("No commit hash for {}: {}", abs_path, exc)
            try:
                remote_urls = self.remote_urls(abs_path) or None
            except VCSProbeError as exc:
                logger.debug("No remotes for {}: {}", abs_path, exc)

        return WorkspaceRoot(
            path=abs_path,
            name=name or "",
            vcs=vcs,
            commit_hash=commit_hash,
            remote_urls=remote_urls,
        )


def default_detector() -> VCSDetector:
    """Detector configured from ``POLYROOT_*`` settings."""
    return VCSDetector.from_settings(get_settings())
