"""Shared test fixtures: fake VCS detector and throwaway git repositories.

Most tests use ``FakeDetector`` so VCS metadata is deterministic and no
subprocess runs.  Tests that exercise the real probes use the ``git_repo``
fixture, which is skipped when the ``git`` binary is not on PATH.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Iterator
from pathlib import Path

import pytest

from polyroot.workspace.models.enums import VCSType
from polyroot.workspace.settings import get_settings
from polyroot.workspace.vcs import VCSDetector, VCSProbeError

# ---------------------------------------------------------------------------
# Fake detector
# ---------------------------------------------------------------------------


class FakeDetector(VCSDetector):
    """In-memory detector keyed by absolute path.

    Paths not registered report ``VCSType.NONE``; metadata getters for
    unregistered or failing paths raise ``VCSProbeError`` like a real probe.
    """

    def __init__(self) -> None:
        super().__init__(timeout=1.0)
        self.vcs: dict[str, VCSType] = {}
        self.hashes: dict[str, str] = {}
        self.remotes: dict[str, list[str]] = {}
        self.failing: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def add_git(self, path: str | os.PathLike[str], commit: str = "abc123", remotes: list[str] | None = None) -> None:
        key = os.path.abspath(path)
        self.vcs[key] = VCSType.GIT
        self.hashes[key] = commit
        if remotes is not None:
            self.remotes[key] = remotes

    def _check(self, op: str, path: str | os.PathLike[str]) -> str:
        key = os.path.abspath(path)
        self.calls.append((op, key))
        if key in self.failing:
            raise VCSProbeError(["git", op], key, "simulated failure")
        return key

    def detect(self, path: str | os.PathLike[str]) -> VCSType:
        key = os.path.abspath(path)
        self.calls.append(("detect", key))
        return self.vcs.get(key, VCSType.NONE)

    def commit_hash(self, path: str | os.PathLike[str]) -> str:
        key = self._check("rev-parse", path)
        if key not in self.hashes:
            raise VCSProbeError(["git", "rev-parse"], key, "no HEAD")
        return self.hashes[key]

    def remote_urls(self, path: str | os.PathLike[str]) -> list[str]:
        key = self._check("remote", path)
        return list(self.remotes.get(key, []))


@pytest.fixture
def detector() -> FakeDetector:
    return FakeDetector()


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate tests from POLYROOT_* variables in the developer's shell."""
    for key in list(os.environ):
        if key.startswith("POLYROOT_"):
            monkeypatch.delenv(key)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Real git repositories
# ---------------------------------------------------------------------------


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A git repository with one commit and two remotes."""
    if shutil.which("git") is None:
        pytest.skip("git binary not available")

    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    (repo / "README.md").write_text("hello\n")
    git(repo, "add", "README.md")
    git(repo, "commit", "-q", "-m", "initial")
    git(repo, "remote", "add", "origin", "https://example.com/org/repo.git")
    git(repo, "remote", "add", "mirror", "https://mirror.example.com/org/repo.git")
    return repo
