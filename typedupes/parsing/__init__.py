"""Tree-sitter parsing of TypeScript sources into type declarations."""

from __future__ import annotations

from .extractor import DeclarationExtractor, ExtractionResult
from .grammar import language_for_path
from .shape_builder import ShapeBuilder

__all__ = [
    "DeclarationExtractor",
    "ExtractionResult",
    "ShapeBuilder",
    "language_for_path",
]
