"""Error taxonomy for typedupes scans."""

from __future__ import annotations

from typing import Optional


class TypeDupesError(Exception):
    """Base class for typedupes failures."""


class InvocationError(TypeDupesError):
    """Raised when the scan cannot start (bad or unreadable root)."""


class DirectoryReadError(TypeDupesError):
    """Raised when a directory below the root cannot be listed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot read directory {path}: {reason}")
        self.path = path
        self.reason = reason


class ParseError(TypeDupesError):
    """Raised when a source file holds an unterminated string, template or comment."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.line = line
        self.column = column

    def __str__(self) -> str:
        location = self.path or "<source>"
        if self.line is not None:
            location = f"{location}:{self.line}"
            if self.column is not None:
                location = f"{location}:{self.column}"
        return f"{location}: {self.message}"


class InternalInvariantError(TypeDupesError):
    """Raised when a declaration breaks an assumption of the shape model."""


__all__ = [
    "DirectoryReadError",
    "InternalInvariantError",
    "InvocationError",
    "ParseError",
    "TypeDupesError",
]
