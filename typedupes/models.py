"""Core data models shared across typedupes components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from .shapes import Shape

ALIAS = "alias"
INTERFACE = "structural-interface"

SHAPE_DUPLICATE = "shape-duplicate"
NAME_DUPLICATE = "name-duplicate"

CRITICAL = "critical"
WARNING = "warning"
REDUNDANT = "redundant"


@dataclass(frozen=True)
class SourceFile:
    """A file path plus its raw text, handed from the walker to the extractor."""

    path: Path
    rel_path: str
    text: str


@dataclass(frozen=True)
class TypeDeclaration:
    """A named type-level binding found in one file."""

    name: str
    path: str
    line: int
    column: int
    kind: str
    shape: Shape
    type_params: Tuple[str, ...] = ()
    exported: bool = False
    normalized: Optional[Shape] = None

    @property
    def arity(self) -> int:
        return len(self.type_params)

    @property
    def location(self) -> Tuple[str, int, int]:
        return (self.path, self.line, self.column)


@dataclass(frozen=True)
class Diagnostic:
    """Non-fatal problem recorded during a scan."""

    kind: str
    path: str
    message: str
    line: Optional[int] = None

    def render(self) -> str:
        location = f"{self.path}:{self.line}" if self.line is not None else self.path
        return f"{location}: {self.message}"


@dataclass(frozen=True)
class DuplicateGroup:
    """Two or more declarations considered duplicates of each other."""

    tags: Tuple[str, ...]
    members: Tuple[TypeDeclaration, ...]
    shape: Optional[Shape] = None
    name: Optional[str] = None

    @property
    def severity(self) -> str:
        if self.shape is not None and self.name is not None:
            return CRITICAL
        if NAME_DUPLICATE in self.tags:
            return WARNING
        return REDUNDANT


@dataclass
class ScanResult:
    """Everything the report emitter needs after a scan completes."""

    root: str
    files_scanned: int
    declarations: int
    unique_names: int
    groups: List[DuplicateGroup] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
