"""Persistent workspace configuration (``.workspace.json``).

The config file stores the manager state plus a format version and user
preferences::

    {
      "version": 1,
      "roots": [{"path": "/repo/frontend", "name": "frontend", "vcs": "git"}],
      "primaryIndex": 0,
      "preferences": {"autoDetectWorkspaces": false, "maxWorkspaces": 10, ...}
    }

Writes are atomic: data goes to a temporary file in the same directory,
then is renamed onto the target, so a crash never leaves a half-written
config behind.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from polyroot.workspace.manager import WorkspaceManager
from polyroot.workspace.models.config import CURRENT_CONFIG_VERSION, Preferences, WorkspaceConfig
from polyroot.workspace.vcs import VCSDetector

CONFIG_FILE_NAME = ".workspace.json"


class WorkspaceConfigError(ValueError):
    """The workspace config file is unreadable, malformed or invalid."""


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------


def load_config(path: str | os.PathLike[str]) -> WorkspaceConfig:
    """Read and normalize a config file.

    Missing version becomes 1, an out-of-range primary index becomes 0, and
    absent preferences become defaults.  Raises ``WorkspaceConfigError``.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"failed to read config file {path}: {exc}"
        raise WorkspaceConfigError(msg) from exc

    try:
        config = WorkspaceConfig.model_validate_json(raw)
    except ValidationError as exc:
        msg = f"failed to parse config file {path}: {exc}"
        raise WorkspaceConfigError(msg) from exc

    if config.version == 0:
        config.version = CURRENT_CONFIG_VERSION
    if config.primary_index < 0 or config.primary_index >= len(config.roots):
        config.primary_index = 0
    if config.preferences is None or config.preferences.max_workspaces == 0:
        config.preferences = Preferences()
    return config


def save_config(path: str | os.PathLike[str], config: WorkspaceConfig) -> None:
    """Write *config* as indented JSON, atomically."""
    if config.version == 0:
        config.version = CURRENT_CONFIG_VERSION
    if config.preferences is None:
        config.preferences = Preferences()
    data = config.model_dump_json(by_alias=True, exclude_none=True, indent=2)
    try:
        _atomic_write(Path(path), data)
    except OSError as exc:
        msg = f"failed to write config file {path}: {exc}"
        raise WorkspaceConfigError(msg) from exc
    logger.debug("Saved workspace config to {}", path)


def config_path(directory: str | os.PathLike[str], file_name: str = CONFIG_FILE_NAME) -> Path:
    return Path(directory) / file_name


def config_exists(directory: str | os.PathLike[str], file_name: str = CONFIG_FILE_NAME) -> bool:
    return config_path(directory, file_name).is_file()


def load_config_from_directory(directory: str | os.PathLike[str], file_name: str = CONFIG_FILE_NAME) -> WorkspaceConfig:
    return load_config(config_path(directory, file_name))


def save_config_to_directory(
    directory: str | os.PathLike[str],
    config: WorkspaceConfig,
    file_name: str = CONFIG_FILE_NAME,
) -> None:
    save_config(config_path(directory, file_name), config)


# ---------------------------------------------------------------------------
# Manager conversion
# ---------------------------------------------------------------------------


def manager_from_config(config: WorkspaceConfig, *, detector: VCSDetector | None = None) -> WorkspaceManager:
    return WorkspaceManager(config.roots, config.primary_index, detector=detector)


def manager_to_config(manager: WorkspaceManager, preferences: Preferences | None = None) -> WorkspaceConfig:
    state = manager.to_state()
    return WorkspaceConfig(
        version=CURRENT_CONFIG_VERSION,
        roots=state.roots,
        primary_index=state.primary_index,
        preferences=preferences.model_copy() if preferences is not None else Preferences(),
    )


def load_manager_from_directory(
    directory: str | os.PathLike[str],
    file_name: str = CONFIG_FILE_NAME,
    *,
    detector: VCSDetector | None = None,
) -> tuple[WorkspaceManager | None, Preferences | None]:
    """Load the manager stored in *directory*.

    Returns ``(None, None)`` when the directory has no config file; raises
    ``WorkspaceConfigError`` when the file exists but cannot be loaded.
    """
    if not config_exists(directory, file_name):
        return None, None
    config = load_config_from_directory(directory, file_name)
    return manager_from_config(config, detector=detector), config.preferences


def save_manager_to_directory(
    directory: str | os.PathLike[str],
    manager: WorkspaceManager,
    preferences: Preferences | None = None,
    file_name: str = CONFIG_FILE_NAME,
) -> None:
    save_config_to_directory(directory, manager_to_config(manager, preferences), file_name)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def migrate_config(config: WorkspaceConfig) -> WorkspaceConfig:
    """Bring *config* to the current format.  Only version 1 exists so far."""
    if config.version == CURRENT_CONFIG_VERSION:
        return config
    msg = f"unsupported config version: {config.version}"
    raise WorkspaceConfigError(msg)


def validate_config(config: WorkspaceConfig) -> None:
    """Strict validation of a config, including that every root exists on disk.

    Raises ``WorkspaceConfigError`` describing the first problem found.
    """
    if config.version != CURRENT_CONFIG_VERSION:
        msg = f"unsupported config version: {config.version}"
        raise WorkspaceConfigError(msg)

    if not config.roots:
        msg = "config must have at least one workspace root"
        raise WorkspaceConfigError(msg)

    if config.primary_index < 0 or config.primary_index >= len(config.roots):
        msg = f"invalid primary index: {config.primary_index} (have {len(config.roots)} roots)"
        raise WorkspaceConfigError(msg)

    for i, root in enumerate(config.roots):
        if not root.path:
            msg = f"root {i} has empty path"
            raise WorkspaceConfigError(msg)
        if not root.name:
            msg = f"root {i} has empty name"
            raise WorkspaceConfigError(msg)
        if not os.path.exists(root.path):
            msg = f"root {i} path does not exist: {root.path}"
            raise WorkspaceConfigError(msg)
        if not os.path.isdir(root.path):
            msg = f"root {i} path is not a directory: {root.path}"
            raise WorkspaceConfigError(msg)

    preferences = config.preferences or Preferences()
    if preferences.max_workspaces < 1:
        msg = "maxWorkspaces must be at least 1"
        raise WorkspaceConfigError(msg)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _atomic_write(path: Path, data: str) -> None:
    """Write data atomically: temp file + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise
