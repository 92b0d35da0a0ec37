"""Unit tests for path resolution and workspace hints."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from polyroot.workspace.manager import WorkspaceManager, WorkspaceNotFoundError
from polyroot.workspace.models import WorkspaceRoot
from polyroot.workspace.resolver import (
    NoWorkspaceRootsError,
    PathResolver,
    format_path_with_hint,
    parse_workspace_hint,
)


@pytest.fixture
def resolver() -> PathResolver:
    manager = WorkspaceManager(
        [
            WorkspaceRoot(path="/repo/frontend", name="frontend"),
            WorkspaceRoot(path="/repo/backend", name="backend"),
        ],
        0,
    )
    return PathResolver(manager)


# ---------------------------------------------------------------------------
# Hint grammar
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("@backend:main.go", ("backend", "main.go")),
        ("@backend:src/a:b.txt", ("backend", "src/a:b.txt")),
        ("@backend:", ("backend", "")),
        ("@:main.go", ("", "main.go")),
        ("@backend", (None, "@backend")),
        ("main.go", (None, "main.go")),
        ("src/@x:y", (None, "src/@x:y")),
        ("", (None, "")),
    ],
)
def test_parse_workspace_hint(text: str, expected: tuple[str | None, str]) -> None:
    assert parse_workspace_hint(text) == expected


def test_format_path_with_hint() -> None:
    assert format_path_with_hint("backend", "src/main.go") == "@backend:src/main.go"
    assert parse_workspace_hint(format_path_with_hint("be", "x/y")) == ("be", "x/y")


# ---------------------------------------------------------------------------
# resolve_path
# ---------------------------------------------------------------------------


def test_relative_path_resolves_against_primary(resolver: PathResolver) -> None:
    resolved = resolver.resolve_path("src/app.ts")

    assert resolved.absolute_path == "/repo/frontend/src/app.ts"
    assert resolved.root.name == "frontend"
    assert resolved.relative_path == "src/app.ts"


def test_relative_path_follows_primary_switch(resolver: PathResolver) -> None:
    resolver.manager.switch_workspace("backend")
    assert resolver.resolve_path("main.go").absolute_path == "/repo/backend/main.go"


def test_hinted_path(resolver: PathResolver) -> None:
    resolved = resolver.resolve_path_string("@backend:main.go")

    assert resolved.root.name == "backend"
    assert resolved.absolute_path == "/repo/backend/main.go"
    assert resolved.relative_path == "main.go"


def test_explicit_hint_argument(resolver: PathResolver) -> None:
    assert resolver.resolve_path("cmd/x.go", "backend").absolute_path == "/repo/backend/cmd/x.go"


def test_unknown_hint_is_error(resolver: PathResolver) -> None:
    with pytest.raises(WorkspaceNotFoundError, match="workspace not found: mobile"):
        resolver.resolve_path_string("@mobile:app.kt")
    with pytest.raises(WorkspaceNotFoundError):
        resolver.resolve_path_string("@:main.go")


def test_string_without_separator_is_plain_path(resolver: PathResolver) -> None:
    resolved = resolver.resolve_path_string("@backend")
    assert resolved.root.name == "frontend"
    assert resolved.absolute_path == "/repo/frontend/@backend"


def test_absolute_path_inside_root(resolver: PathResolver) -> None:
    resolved = resolver.resolve_path("/repo/backend/internal/db.go")

    assert resolved.root.name == "backend"
    assert resolved.absolute_path == "/repo/backend/internal/db.go"
    assert resolved.relative_path == "internal/db.go"


def test_absolute_path_outside_roots_falls_back_to_primary(resolver: PathResolver) -> None:
    resolved = resolver.resolve_path("/etc/hosts")

    assert resolved.root.name == "frontend"
    assert resolved.absolute_path == "/etc/hosts"
    assert resolved.relative_path == os.path.relpath("/etc/hosts", "/repo/frontend")


def test_relative_path_is_normalized(resolver: PathResolver) -> None:
    assert resolver.resolve_path("./src/../lib/x.ts").absolute_path == "/repo/frontend/lib/x.ts"


def test_no_roots_is_error() -> None:
    resolver = PathResolver(WorkspaceManager())

    with pytest.raises(NoWorkspaceRootsError, match="no workspace roots available"):
        resolver.resolve_path("x")
    with pytest.raises(NoWorkspaceRootsError):
        resolver.resolve_path("/abs/x")
    with pytest.raises(NoWorkspaceRootsError):
        resolver.resolve_path_with_disambiguation("x")
    assert resolver.get_workspace_for_path("x") == ""


# ---------------------------------------------------------------------------
# get_workspace_for_path
# ---------------------------------------------------------------------------


def test_get_workspace_for_path(resolver: PathResolver) -> None:
    assert resolver.get_workspace_for_path("src/app.ts") == "frontend"
    assert resolver.get_workspace_for_path("/repo/backend/main.go") == "backend"
    assert resolver.get_workspace_for_path("/repo/backend") == "backend"
    assert resolver.get_workspace_for_path("/repo/backendish/x") == ""
    assert resolver.get_workspace_for_path("/elsewhere/x") == ""


def test_get_workspace_for_path_prefers_nested_root() -> None:
    manager = WorkspaceManager([WorkspaceRoot(path="/mono"), WorkspaceRoot(path="/mono/services/api")])
    resolver = PathResolver(manager)

    assert resolver.get_workspace_for_path("/mono/services/api/main.go") == "api"
    assert resolver.get_workspace_for_path("/mono/services/web/main.go") == "mono"


# ---------------------------------------------------------------------------
# Disambiguation (real filesystem)
# ---------------------------------------------------------------------------


@pytest.fixture
def tree(tmp_path: Path) -> PathResolver:
    for name in ("fe", "be", "docs"):
        (tmp_path / name).mkdir()
    (tmp_path / "fe" / "shared.txt").write_text("fe")
    (tmp_path / "be" / "shared.txt").write_text("be")
    (tmp_path / "be" / "only_be.txt").write_text("be")
    manager = WorkspaceManager([WorkspaceRoot(path=tmp_path / name) for name in ("fe", "be", "docs")], 0)
    return PathResolver(manager)


def test_disambiguate_path_lists_matches_in_order(tree: PathResolver) -> None:
    assert tree.disambiguate_path("shared.txt") == ["fe", "be"]
    assert tree.disambiguate_path("only_be.txt") == ["be"]
    assert tree.disambiguate_path("missing.txt") == []


def test_disambiguate_path_is_stable(tree: PathResolver) -> None:
    first = tree.disambiguate_path("shared.txt")
    second = tree.disambiguate_path("shared.txt")

    assert first == second == ["fe", "be"]


def test_unique_match_wins_over_primary(tree: PathResolver) -> None:
    resolved = tree.resolve_path_with_disambiguation("only_be.txt")

    assert resolved.root.name == "be"
    assert resolved.relative_path == "only_be.txt"
    assert Path(resolved.absolute_path).read_text() == "be"


def test_primary_preferred_among_matches(tree: PathResolver) -> None:
    tree.manager.set_primary_by_name("be")
    assert tree.resolve_path_with_disambiguation("shared.txt").root.name == "be"


def test_first_registered_when_primary_not_among_matches(tree: PathResolver) -> None:
    tree.manager.set_primary_by_name("docs")
    assert tree.resolve_path_with_disambiguation("shared.txt").root.name == "fe"


def test_no_match_falls_back_to_primary(tree: PathResolver) -> None:
    tree.manager.set_primary_by_name("docs")
    resolved = tree.resolve_path_with_disambiguation("new/file.txt")

    assert resolved.root.name == "docs"
    assert resolved.absolute_path.endswith(os.path.join("docs", "new", "file.txt"))


def test_absolute_input_bypasses_disambiguation(tree: PathResolver, tmp_path: Path) -> None:
    target = tmp_path / "be" / "shared.txt"
    assert tree.resolve_path_with_disambiguation(str(target)).root.name == "be"


def test_duplicate_names_prefer_primary_by_position(tmp_path: Path) -> None:
    for parent in ("x", "y"):
        (tmp_path / parent / "app").mkdir(parents=True)
        (tmp_path / parent / "app" / "f.txt").write_text(parent)
    manager = WorkspaceManager(
        [WorkspaceRoot(path=tmp_path / "x" / "app"), WorkspaceRoot(path=tmp_path / "y" / "app")],
        1,
    )

    resolved = PathResolver(manager).resolve_path_with_disambiguation("f.txt")

    assert resolved.root.path == str(tmp_path / "y" / "app")


def test_file_exists(tree: PathResolver, tmp_path: Path) -> None:
    assert tree.file_exists("only_be.txt") is True
    assert tree.file_exists("shared.txt") is True
    assert tree.file_exists("missing.txt") is False
    assert tree.file_exists(str(tmp_path / "fe" / "shared.txt")) is True
    assert tree.file_exists(str(tmp_path / "fe" / "nope")) is False


def test_file_exists_without_roots() -> None:
    assert PathResolver(WorkspaceManager()).file_exists("anything") is False
