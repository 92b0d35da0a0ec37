"""Workspace auto-detection.

Scans a directory tree for project markers (VCS directories, language
manifests, build files) and turns every directory carrying one into a
``WorkspaceRoot``.  ``smart_workspace_initialization`` ties detection
together with the config file and the single-directory fallback:

1. Load ``.workspace.json`` from the directory, if present.
2. Otherwise detect workspaces (and save the result as the new config).
3. Otherwise manage the directory alone.
"""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from polyroot.workspace.config import (
    CONFIG_FILE_NAME,
    WorkspaceConfigError,
    load_manager_from_directory,
    save_manager_to_directory,
)
from polyroot.workspace.manager import WorkspaceManager
from polyroot.workspace.models.config import Preferences
from polyroot.workspace.models.enums import VCSType
from polyroot.workspace.models.workspace import WorkspaceRoot, normalize_root_path
from polyroot.workspace.vcs import VCSDetector, default_detector

# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkspaceMarker:
    """A file or directory whose presence marks a project root.

    File marker names may be glob patterns (``*.csproj``).
    """

    name: str
    is_directory: bool = False
    priority: int = 0
    type: str = "language"

    def matches(self, entry_name: str, is_dir: bool) -> bool:
        if self.is_directory != is_dir:
            return False
        if not self.is_directory and any(ch in self.name for ch in "*?["):
            return fnmatch.fnmatchcase(entry_name, self.name)
        return entry_name == self.name


COMMON_MARKERS: tuple[WorkspaceMarker, ...] = (
    # VCS
    WorkspaceMarker(".git", is_directory=True, priority=100, type="vcs"),
    WorkspaceMarker(".hg", is_directory=True, priority=100, type="vcs"),
    # Go
    WorkspaceMarker("go.mod", priority=90),
    # JavaScript / TypeScript, Rust
    WorkspaceMarker("package.json", priority=85),
    WorkspaceMarker("Cargo.toml", priority=85),
    # Python
    WorkspaceMarker("setup.py", priority=80),
    WorkspaceMarker("pyproject.toml", priority=80),
    WorkspaceMarker("Pipfile", priority=80),
    # JVM
    WorkspaceMarker("pom.xml", priority=80),
    WorkspaceMarker("build.gradle", priority=80),
    WorkspaceMarker("build.gradle.kts", priority=80),
    # .NET
    WorkspaceMarker("*.csproj", priority=80),
    WorkspaceMarker("*.sln", priority=80),
    # Ruby, PHP
    WorkspaceMarker("Gemfile", priority=75),
    WorkspaceMarker("composer.json", priority=75),
    # Generic build tools
    WorkspaceMarker("Makefile", priority=70, type="build"),
    WorkspaceMarker("CMakeLists.txt", priority=70, type="build"),
)

_VCS_DIR_NAMES = frozenset({".git", ".hg"})


@dataclass
class DetectionOptions:
    """Knobs for ``detect_workspaces``."""

    max_depth: int = 3
    max_workspaces: int = 10
    include_hidden: bool = False
    prefer_vcs_roots: bool = True
    custom_markers: list[WorkspaceMarker] = field(default_factory=list)
    exclude_paths: list[str] = field(
        default_factory=lambda: ["node_modules", "vendor", "target", "build", "dist", ".git", ".hg", ".svn"]
    )

    @classmethod
    def from_preferences(cls, preferences: Preferences) -> DetectionOptions:
        return cls(
            max_workspaces=preferences.max_workspaces,
            include_hidden=preferences.include_hidden,
            prefer_vcs_roots=preferences.prefer_vcs_roots,
        )


@dataclass
class _Candidate:
    path: str
    priority: int
    markers: list[str]


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def detect_workspaces(
    root_path: str | os.PathLike[str],
    options: DetectionOptions | None = None,
    *,
    detector: VCSDetector | None = None,
) -> list[WorkspaceRoot]:
    """Discover workspace roots under *root_path*.

    Raises ``NotADirectoryError`` / ``FileNotFoundError`` if *root_path* is
    not an existing directory.  Unreadable subdirectories are skipped.
    """
    options = options or DetectionOptions()
    detector = detector or default_detector()
    root = normalize_root_path(root_path)

    if not os.path.exists(root):
        raise FileNotFoundError(root)
    if not os.path.isdir(root):
        raise NotADirectoryError(root)

    markers = [*COMMON_MARKERS, *options.custom_markers]
    candidates: dict[str, _Candidate] = {}
    _scan(root, 0, markers, options, candidates)

    roots = [detector.probe_root(path) for path in sorted(candidates)[: options.max_workspaces]]
    if options.prefer_vcs_roots:
        # VCS roots first, then alphabetical by name.
        roots.sort(key=lambda r: (r.vcs == VCSType.NONE, r.name))

    logger.debug("Detected {} workspace(s) under {}", len(roots), root)
    return roots


def _scan(
    current: str,
    depth: int,
    markers: list[WorkspaceMarker],
    options: DetectionOptions,
    candidates: dict[str, _Candidate],
) -> None:
    if depth > options.max_depth or len(candidates) >= options.max_workspaces:
        return

    try:
        with os.scandir(current) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError:
        return

    found: list[str] = []
    priority = 0
    subdirs: list[str] = []
    for entry in entries:
        try:
            is_dir = entry.is_dir()
        except OSError:
            continue
        hidden = entry.name.startswith(".")

        if not hidden or options.include_hidden or entry.name in _VCS_DIR_NAMES:
            for marker in markers:
                if marker.matches(entry.name, is_dir):
                    found.append(marker.name)
                    priority = max(priority, marker.priority)

        if is_dir and (options.include_hidden or not hidden) and entry.name not in options.exclude_paths:
            subdirs.append(entry.path)

    if found:
        candidates[current] = _Candidate(path=current, priority=priority, markers=found)

    for subdir in subdirs:
        _scan(subdir, depth + 1, markers, options, candidates)


def detect_workspaces_from_preferences(
    root_path: str | os.PathLike[str],
    preferences: Preferences,
    *,
    detector: VCSDetector | None = None,
) -> list[WorkspaceRoot]:
    """Detection driven by config preferences; empty when auto-detect is off."""
    if not preferences.auto_detect_workspaces:
        return []
    return detect_workspaces(root_path, DetectionOptions.from_preferences(preferences), detector=detector)


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------


def smart_workspace_initialization(
    root_path: str | os.PathLike[str],
    *,
    config_file_name: str = CONFIG_FILE_NAME,
    detector: VCSDetector | None = None,
) -> WorkspaceManager:
    """Build a manager for *root_path*: config file, then detection, then single directory.

    A detected layout is saved as the directory's config for next time.
    Failures of the first two steps are logged and fall through.
    """
    detector = detector or default_detector()
    root = normalize_root_path(root_path)

    try:
        manager, _ = load_manager_from_directory(root, config_file_name, detector=detector)
    except WorkspaceConfigError as exc:
        logger.warning("Ignoring workspace config in {}: {}", root, exc)
        manager = None
    if manager is not None:
        logger.info("Loaded workspace config from {}", root)
        return manager

    try:
        roots = detect_workspaces(root, detector=detector)
    except OSError as exc:
        logger.warning("Workspace detection failed for {}: {}", root, exc)
        roots = []

    if roots:
        primary_index = next((i for i, r in enumerate(roots) if r.path == root), 0)
        manager = WorkspaceManager(roots, primary_index, detector=detector)
        try:
            save_manager_to_directory(root, manager, file_name=config_file_name)
        except WorkspaceConfigError as exc:
            logger.warning("Could not save detected workspaces: {}", exc)
        logger.info("Detected {} workspace(s) in {}", len(roots), root)
        return manager

    return WorkspaceManager.from_single_directory(root, detector=detector)


def find_project_root(
    start_path: str | os.PathLike[str],
    markers: tuple[str, ...] = ("go.mod",),
) -> Path:
    """Locate the project root around *start_path*.

    Checks *start_path*, then its immediate subdirectories, then its
    ancestors for any of *markers*.  Falls back to *start_path* so the agent
    still works in projects without a marker.
    """
    start = Path(normalize_root_path(start_path))

    def has_marker(directory: Path) -> bool:
        return any((directory / marker).exists() for marker in markers)

    if has_marker(start):
        return start

    try:
        children = sorted(p for p in start.iterdir() if p.is_dir())
    except OSError:
        children = []
    for child in children:
        if has_marker(child):
            return child

    for parent in start.parents:
        if has_marker(parent):
            return parent

    return start
