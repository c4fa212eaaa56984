"""Tests for typedupes.walker."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from typedupes.walker import SourceWalker, build_ignore_rule


def _write(path: Path, content: str = "export {};\n") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _relative(walker: SourceWalker, root: Path) -> list[str]:
    return [path.relative_to(root).as_posix() for path in walker]


def test_walk_filters_extensions_and_sorts(tmp_path: Path) -> None:
    for name in ["b.ts", "a.tsx", "c.mts", "d.cts", "e.js", "f.d.ts", "notes.md", "sub/z.ts"]:
        _write(tmp_path / name)

    paths = _relative(SourceWalker(tmp_path), tmp_path)

    assert paths == ["a.tsx", "b.ts", "c.mts", "d.cts", "f.d.ts", "sub/z.ts"]


def test_walk_skips_dependency_and_cache_folders(tmp_path: Path) -> None:
    _write(tmp_path / "src" / "app.ts")
    _write(tmp_path / "node_modules" / "lib" / "index.ts")
    _write(tmp_path / "packages" / "ui" / "node_modules" / "dep.ts")
    _write(tmp_path / ".nx" / "cache" / "out.ts")

    assert _relative(SourceWalker(tmp_path), tmp_path) == ["src/app.ts"]


def test_walk_honours_exclude_paths(tmp_path: Path) -> None:
    _write(tmp_path / "src" / "app.ts")
    _write(tmp_path / "dist" / "app.ts")
    _write(tmp_path / "src" / "generated" / "api.ts")
    _write(tmp_path / "src" / "app.spec.ts")

    walker = SourceWalker(tmp_path, exclude_paths=["dist/", "src/generated", "*.spec.ts"])

    assert _relative(walker, tmp_path) == ["src/app.ts"]


def test_walk_can_be_restarted(tmp_path: Path) -> None:
    _write(tmp_path / "a.ts")
    _write(tmp_path / "b.ts")
    walker = SourceWalker(tmp_path)

    assert list(walker) == list(walker)
    assert len(list(walker)) == 2


def test_walk_survives_symlink_cycles(tmp_path: Path) -> None:
    _write(tmp_path / "pkg" / "types.ts")
    try:
        os.symlink(tmp_path, tmp_path / "pkg" / "loop", target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks are not supported here")

    assert _relative(SourceWalker(tmp_path), tmp_path) == ["pkg/types.ts"]


@pytest.mark.skipif(
    not hasattr(os, "geteuid") or os.geteuid() == 0,
    reason="permission checks are bypassed for root",
)
def test_unreadable_directory_becomes_diagnostic(tmp_path: Path) -> None:
    _write(tmp_path / "ok.ts")
    locked = tmp_path / "locked"
    _write(locked / "hidden.ts")
    locked.chmod(0)
    try:
        walker = SourceWalker(tmp_path)
        paths = _relative(walker, tmp_path)
    finally:
        locked.chmod(0o755)

    assert paths == ["ok.ts"]
    assert [diagnostic.kind for diagnostic in walker.diagnostics] == ["directory-read"]
    assert walker.diagnostics[0].path == "locked"


def test_ignore_rule_variants() -> None:
    assert build_ignore_rule("   ") is None

    directory = build_ignore_rule("build/")
    assert directory.matches("build", True)
    assert directory.matches("packages/app/build", True)
    assert not directory.matches("build", False)

    anchored = build_ignore_rule("/legacy")
    assert anchored.matches("legacy", True)
    assert not anchored.matches("src/legacy", True)
