"""Tree-sitter grammars and per-thread parsers for TypeScript sources."""

from __future__ import annotations

import threading
from typing import Dict

import tree_sitter_typescript
from tree_sitter import Language, Parser, Tree

TYPESCRIPT = "typescript"
TSX = "tsx"

_LANGUAGES: Dict[str, Language] = {
    TYPESCRIPT: Language(tree_sitter_typescript.language_typescript()),
    TSX: Language(tree_sitter_typescript.language_tsx()),
}

_local = threading.local()


def language_for_path(path: str) -> str:
    """Pick the grammar by suffix; only ``.tsx`` files may contain JSX."""
    if path.lower().endswith(".tsx"):
        return TSX
    return TYPESCRIPT


def get_parser(language_key: str) -> Parser:
    # Parser objects are not shared between threads.
    parsers: Dict[str, Parser] | None = getattr(_local, "parsers", None)
    if parsers is None:
        parsers = {}
        _local.parsers = parsers
    parser = parsers.get(language_key)
    if parser is None:
        parser = Parser(_LANGUAGES[language_key])
        parsers[language_key] = parser
    return parser


def parse(source_bytes: bytes, language_key: str) -> Tree:
    return get_parser(language_key).parse(source_bytes)


__all__ = ["TSX", "TYPESCRIPT", "get_parser", "language_for_path", "parse"]
