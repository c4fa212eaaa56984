"""Source tree walking with ignore rules and symlink-cycle protection."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence, Set

from .config import DEFAULT_EXTENSIONS, DEFAULT_IGNORED_DIRS
from .errors import DirectoryReadError
from .logging import get_logger
from .models import Diagnostic


@dataclass
class IgnoreRule:
    """Represents a .gitignore-style exclude pattern from .typedupes.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return False

        for part in rel_path.split("/"):
            if fnmatchcase(part, self.pattern):
                return True
        return False


def build_ignore_rule(pattern: str) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        has_slash="/" in pattern,
    )


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    return any(rule.matches(rel_path, is_dir) for rule in rules)


class SourceWalker:
    """Lazily enumerates TypeScript sources below ``root`` in sorted order.

    Every call to ``iter()`` starts a fresh walk. Unreadable directories are
    skipped and recorded in ``diagnostics``.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        exclude_paths: Iterable[str] = (),
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    ) -> None:
        self.root = Path(root)
        self.rules: List[IgnoreRule] = []
        for pattern in exclude_paths:
            rule = build_ignore_rule(pattern)
            if rule is not None:
                self.rules.append(rule)
        self.extensions = tuple(extension.lower() for extension in extensions)
        self.diagnostics: List[Diagnostic] = []
        self.logger = get_logger("walker")

    def __iter__(self) -> Iterator[Path]:
        self.diagnostics = []
        return self._walk()

    def _walk(self) -> Iterator[Path]:
        root = self.root
        visited: Set[str] = set()

        for dirpath, dirnames, filenames in os.walk(root, onerror=self._on_error, followlinks=True):
            current_dir = Path(dirpath)
            real_dir = os.path.realpath(dirpath)
            if real_dir in visited:
                self.logger.debug("Skipping already visited directory %s", dirpath)
                dirnames[:] = []
                continue
            visited.add(real_dir)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            kept_dirs = []
            for name in sorted(dirnames):
                if name in DEFAULT_IGNORED_DIRS:
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if _should_ignore(rel_path, True, self.rules):
                    continue
                kept_dirs.append(name)
            dirnames[:] = kept_dirs

            for filename in sorted(filenames):
                if not filename.lower().endswith(self.extensions):
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if _should_ignore(rel_path, False, self.rules):
                    continue
                path = current_dir / filename
                real_file = os.path.realpath(path)
                if real_file in visited:
                    continue
                visited.add(real_file)
                yield path

    def _on_error(self, error: OSError) -> None:
        location = error.filename or str(self.root)
        failure = DirectoryReadError(str(location), error.strerror or str(error))
        self.logger.debug("%s", failure)
        self.diagnostics.append(
            Diagnostic(kind="directory-read", path=self._relative(location), message=str(failure))
        )

    def _relative(self, location: str) -> str:
        try:
            return Path(location).relative_to(self.root).as_posix()
        except ValueError:
            return str(location)


__all__ = ["IgnoreRule", "SourceWalker", "build_ignore_rule"]
