"""Find duplicate TypeScript type declarations across a source tree."""

from __future__ import annotations

from .config import ScanConfig, load_config
from .models import DuplicateGroup, ScanResult, TypeDeclaration
from .normalizer import normalize
from .pipeline import Pipeline, scan

__all__ = [
    "DuplicateGroup",
    "Pipeline",
    "ScanConfig",
    "ScanResult",
    "TypeDeclaration",
    "load_config",
    "normalize",
    "scan",
]
