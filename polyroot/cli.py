import os

import click

from polyroot.workspace.config import (
    WorkspaceConfigError,
    config_exists,
    load_manager_from_directory,
    save_manager_to_directory,
)
from polyroot.workspace.detection import detect_workspaces
from polyroot.workspace.log import setup_logging
from polyroot.workspace.manager import WorkspaceManager, WorkspaceNotFoundError
from polyroot.workspace.prompt import render_workspace_prompt
from polyroot.workspace.resolver import NoWorkspaceRootsError, PathResolver
from polyroot.workspace.settings import get_settings
from polyroot.workspace.vcs import VCSDetector

_directory_option = click.option(
    "--dir",
    "directory",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Workspace directory.",
)


def _load_manager(directory: str) -> WorkspaceManager:
    """Config file if present; otherwise detection (without saving) or the directory alone."""
    settings = get_settings()
    detector = VCSDetector.from_settings(settings)
    try:
        manager, _ = load_manager_from_directory(directory, settings.config_file_name, detector=detector)
    except WorkspaceConfigError as exc:
        raise click.ClickException(str(exc)) from None
    if manager is not None:
        return manager

    if settings.multi_workspace:
        manager = _detect_manager(directory, detector)
        if manager is not None:
            return manager

    return WorkspaceManager.from_single_directory(directory, detector=detector)


def _detect_manager(directory: str, detector: VCSDetector) -> WorkspaceManager | None:
    """Manager over the workspaces detected in *directory*; the directory itself is primary if detected."""
    roots = detect_workspaces(directory, detector=detector)
    if not roots:
        return None
    root = os.path.abspath(directory)
    primary_index = next((i for i, r in enumerate(roots) if r.path == root), 0)
    return WorkspaceManager(roots, primary_index, detector=detector)


@click.group()
def main() -> None:
    """Polyroot - multi-root workspace inspection for coding agents."""
    setup_logging(get_settings().log_level)


@main.command()
@_directory_option
def summary(directory: str) -> None:
    """Show a short summary of the workspace roots."""
    click.echo(_load_manager(directory).get_summary())


@main.command()
@_directory_option
def context(directory: str) -> None:
    """Print the workspace metadata JSON given to the LLM."""
    output = _load_manager(directory).build_environment_context()
    if output:
        click.echo(output)


@main.command()
@_directory_option
@click.option("--disambiguate/--no-disambiguate", default=True, help="Probe every root for relative paths.")
@click.argument("path")
def resolve(directory: str, disambiguate: bool, path: str) -> None:
    """Resolve PATH (optionally '@name:path') to an absolute path."""
    resolver = PathResolver(_load_manager(directory))
    try:
        if disambiguate and not path.startswith("@"):
            resolved = resolver.resolve_path_with_disambiguation(path)
        else:
            resolved = resolver.resolve_path_string(path)
    except (WorkspaceNotFoundError, NoWorkspaceRootsError) as exc:
        raise click.ClickException(str(exc)) from None
    click.echo(f"{resolved.root.name}\t{resolved.absolute_path}")


@main.command()
@_directory_option
@click.argument("path")
def which(directory: str, path: str) -> None:
    """Print the name of the workspace containing PATH."""
    name = PathResolver(_load_manager(directory)).get_workspace_for_path(path)
    if not name:
        raise click.ClickException(f"path is not in any workspace: {path}")
    click.echo(name)


@main.command()
@_directory_option
def prompt(directory: str) -> None:
    """Render the workspace section of the agent system prompt."""
    click.echo(render_workspace_prompt(_load_manager(directory)), nl=False)


@main.command()
@_directory_option
@click.option("--detect/--single", default=True, help="Auto-detect nested workspaces or manage the directory alone.")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing config file.")
def init(directory: str, detect: bool, force: bool) -> None:
    """Write a workspace config file for the directory."""
    settings = get_settings()
    if config_exists(directory, settings.config_file_name) and not force:
        raise click.ClickException(f"{settings.config_file_name} already exists (use --force to overwrite)")

    # The existing config stays in place until the replacement is written.
    detector = VCSDetector.from_settings(settings)
    manager = _detect_manager(directory, detector) if detect else None
    if manager is None:
        manager = WorkspaceManager.from_single_directory(directory, detector=detector)

    try:
        save_manager_to_directory(directory, manager, file_name=settings.config_file_name)
    except WorkspaceConfigError as exc:
        raise click.ClickException(str(exc)) from None
    click.echo(manager.get_summary())
