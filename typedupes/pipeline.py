"""Scan pipeline: walker -> extractor -> normalizer -> grouper."""

from __future__ import annotations

import os
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Set

from .config import ScanConfig
from .errors import InternalInvariantError, InvocationError, ParseError
from .grouper import DuplicateGrouper
from .logging import get_logger
from .models import Diagnostic, ScanResult, SourceFile, TypeDeclaration
from .normalizer import normalize_declaration
from .parsing import DeclarationExtractor
from .walker import SourceWalker

# Futures kept in flight per worker before the walker is paused.
_BACKLOG_PER_WORKER = 4


@dataclass
class FileOutcome:
    """Declarations and diagnostics produced for one file."""

    rel_path: str
    declarations: List[TypeDeclaration] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


class Pipeline:
    """Runs a complete duplicate-type scan for one root directory."""

    def __init__(
        self, config: ScanConfig, *, extractor: Optional[DeclarationExtractor] = None
    ) -> None:
        self.config = config
        self.extractor = extractor or DeclarationExtractor()
        self.logger = get_logger("pipeline")

    def run(self) -> ScanResult:
        """Scan the configured root and return grouped duplicates.

        Raises InvocationError when the root cannot be scanned at all. Every
        other failure is recorded as a diagnostic on the result.
        """
        root = validate_root(self.config.root)
        walker = SourceWalker(
            root,
            exclude_paths=self.config.exclude_paths,
            extensions=self.config.extensions,
        )
        grouper = DuplicateGrouper()
        diagnostics: List[Diagnostic] = []
        files_scanned = 0
        workers = self.config.resolved_workers()
        self.logger.info("Scanning %s with %d workers", root, workers)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="typedupes") as executor:
            pending: Set[Future[FileOutcome]] = set()
            try:
                for path in walker:
                    pending.add(executor.submit(self.process_file, root, path))
                    if len(pending) >= workers * _BACKLOG_PER_WORKER:
                        done, pending = wait(pending, return_when=FIRST_COMPLETED)
                        files_scanned += self._merge(done, grouper, diagnostics)
                done, pending = wait(pending)
                files_scanned += self._merge(done, grouper, diagnostics)
            except KeyboardInterrupt:
                self.logger.warning("Interrupted; cancelling %d pending files", len(pending))
                for future in pending:
                    future.cancel()
                raise

        diagnostics.extend(walker.diagnostics)
        diagnostics.sort(key=lambda item: (item.path, item.line or 0, item.kind, item.message))
        groups = grouper.groups()
        self.logger.info(
            "Scanned %d files, %d declarations, %d duplicate groups",
            files_scanned,
            grouper.declaration_count,
            len(groups),
        )
        return ScanResult(
            root=str(root),
            files_scanned=files_scanned,
            declarations=grouper.declaration_count,
            unique_names=grouper.unique_names,
            groups=groups,
            diagnostics=diagnostics,
        )

    def process_file(self, root: Path, path: Path) -> FileOutcome:
        """Read, extract and normalize one file; never raises for bad input."""
        rel_path = path.relative_to(root).as_posix()
        outcome = FileOutcome(rel_path=rel_path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            outcome.diagnostics.append(
                Diagnostic(kind="file-read", path=rel_path, message=f"Cannot read file: {exc}")
            )
            return outcome

        try:
            extracted = self.extractor.extract(SourceFile(path=path, rel_path=rel_path, text=text))
        except ParseError as exc:
            outcome.diagnostics.append(
                Diagnostic(kind="parse", path=rel_path, message=exc.message, line=exc.line)
            )
            return outcome

        outcome.diagnostics.extend(extracted.diagnostics)
        for declaration in extracted.declarations:
            try:
                outcome.declarations.append(normalize_declaration(declaration))
            except InternalInvariantError as exc:
                outcome.diagnostics.append(
                    Diagnostic(
                        kind="internal",
                        path=rel_path,
                        message=f"Skipped '{declaration.name}': {exc}",
                        line=declaration.line,
                    )
                )
        return outcome

    def _merge(
        self,
        done: Iterable[Future[FileOutcome]],
        grouper: DuplicateGrouper,
        diagnostics: List[Diagnostic],
    ) -> int:
        merged = 0
        for future in done:
            outcome = future.result()
            grouper.add(outcome.declarations)
            for diagnostic in outcome.diagnostics:
                self.logger.debug("%s: %s", diagnostic.kind, diagnostic.render())
            diagnostics.extend(outcome.diagnostics)
            merged += 1
        return merged


def validate_root(root: Path) -> Path:
    """Return the resolved scan root or raise InvocationError when it cannot be scanned."""
    root_path = Path(root).expanduser()
    try:
        if not root_path.exists():
            raise InvocationError(f"Path not found: {root}")
        if not root_path.is_dir():
            raise InvocationError(f"Path is not a directory: {root}")
    except OSError as exc:
        raise InvocationError(f"Path is not readable: {root} ({exc.strerror or exc})") from exc
    root_path = root_path.resolve()
    if not os.access(root_path, os.R_OK | os.X_OK):
        raise InvocationError(f"Path is not readable: {root}")
    try:
        with os.scandir(root_path):
            pass
    except OSError as exc:
        raise InvocationError(f"Path is not readable: {root} ({exc.strerror or exc})") from exc
    return root_path


def scan(root: Path | str, **overrides: object) -> ScanResult:
    """Run a scan of ``root`` with default settings plus keyword overrides."""
    config = ScanConfig(root=Path(root))
    for key, value in overrides.items():
        if not hasattr(config, key):
            raise TypeError(f"Unknown scan setting: {key}")
        setattr(config, key, value)
    return Pipeline(config).run()


__all__ = ["FileOutcome", "Pipeline", "scan", "validate_root"]
