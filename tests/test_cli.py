"""CLI parser and exit status tests."""

from __future__ import annotations

import errno
import json
from pathlib import Path

import pytest

from typedupes.cli import _build_parser, main


def test_cli_defaults_to_current_directory() -> None:
    args = _build_parser().parse_args([])
    assert args.path is None
    assert args.verbose is False
    assert args.report_format is None


def test_cli_accepts_verbose_after_path() -> None:
    args = _build_parser().parse_args(["src", "--verbose", "--workers", "2", "--log-file", "scan.log"])
    assert args.path == "src"
    assert args.log_file == Path("scan.log")
    assert args.verbose is True
    assert args.workers == 2


def test_cli_rejects_non_positive_workers() -> None:
    with pytest.raises(SystemExit) as info:
        _build_parser().parse_args(["--workers", "0"])
    assert info.value.code == 2


def test_main_prints_report(repo_builder, capsys) -> None:
    repo_builder.write(
        {
            "a.ts": "type A = { x: string; y: number }\n",
            "b.ts": "type B = { y: number; x: string }\n",
        }
    )

    main([str(repo_builder.path())])

    out = capsys.readouterr().out
    assert "REDUNDANT: 'A', 'B' share the same shape across 2 declarations." in out
    assert "  - a.ts:1 A (alias)" in out


def test_main_uses_current_directory(repo_builder, capsys, monkeypatch) -> None:
    repo_builder.write({"a.ts": "type A = string;\n"})
    monkeypatch.chdir(repo_builder.path())

    main([])

    assert "Scanned 1 files, found 1 type declarations (1 unique names)." in capsys.readouterr().out


def test_main_json_format(repo_builder, capsys) -> None:
    repo_builder.write({"a.ts": "type A = string;\n"})

    main([str(repo_builder.path()), "--format", "json"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["summary"]["files_scanned"] == 1


def test_main_rejects_missing_path(tmp_path: Path, capsys) -> None:
    with pytest.raises(SystemExit) as info:
        main([str(tmp_path / "missing")])

    assert info.value.code == 2
    assert "Path not found" in capsys.readouterr().err


def test_main_reports_config_errors(tmp_path: Path, capsys) -> None:
    (tmp_path / ".typedupes.yml").write_text("workers: -1\n", encoding="utf-8")

    with pytest.raises(SystemExit) as info:
        main([str(tmp_path)])

    assert info.value.code == 1
    assert "workers must be a positive integer" in capsys.readouterr().err


def test_main_reports_unreadable_config_as_usage_error(tmp_path: Path, capsys, monkeypatch) -> None:
    original_stat = Path.stat

    def guarded_stat(self, *args, **kwargs):
        if self.name == ".typedupes.yml":
            raise PermissionError(errno.EACCES, "Permission denied", str(self))
        return original_stat(self, *args, **kwargs)

    monkeypatch.setattr(Path, "stat", guarded_stat)

    with pytest.raises(SystemExit) as info:
        main([str(tmp_path)])

    assert info.value.code == 2
    assert "Permission denied" in capsys.readouterr().err


def test_main_rejects_file_root_before_reading_config(tmp_path: Path, capsys) -> None:
    target = tmp_path / "a.ts"
    target.write_text("type A = string;\n", encoding="utf-8")

    with pytest.raises(SystemExit) as info:
        main([str(target)])

    assert info.value.code == 2
    assert "Path is not a directory" in capsys.readouterr().err


def test_main_writes_debug_log_file(repo_builder, tmp_path: Path, capsys) -> None:
    repo_builder.write({"a.ts": "type A = string;\n"})
    log_file = tmp_path / "scan.log"

    main([str(repo_builder.path()), "--log-file", str(log_file)])

    capsys.readouterr()
    content = log_file.read_text(encoding="utf-8")
    assert "typedupes.pipeline INFO Scanning" in content
    assert "Extracted 1 declarations from a.ts" in content


def test_main_rejects_unwritable_log_file(tmp_path: Path, capsys) -> None:
    with pytest.raises(SystemExit) as info:
        main([str(tmp_path), "--log-file", str(tmp_path / "missing" / "scan.log")])

    assert info.value.code == 2
    assert "cannot open log file" in capsys.readouterr().err
