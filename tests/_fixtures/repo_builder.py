"""Helper utilities for constructing temporary TypeScript trees in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping

from typedupes.config import ScanConfig
from typedupes.models import ScanResult
from typedupes.pipeline import Pipeline


class RepoBuilder:
    """Utility for writing files into a throwaway source tree and scanning it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the tree."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def scan(self, **settings: object) -> ScanResult:
        """Return a fresh scan of the tree contents."""
        config = ScanConfig(root=self.root, workers=2)
        for key, value in settings.items():
            setattr(config, key, value)
        return Pipeline(config).run()

    def path(self) -> Path:
        """Return the tree root path."""
        return self.root


__all__ = ["RepoBuilder"]
