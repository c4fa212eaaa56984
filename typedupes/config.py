"""Configuration loading for typedupes (.typedupes.yml)."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import InvocationError

CONFIG_FILENAME = ".typedupes.yml"

# Package-dependency and monorepo build-cache folders; always skipped.
DEFAULT_IGNORED_DIRS = ("node_modules", ".nx")
DEFAULT_EXTENSIONS = (".ts", ".tsx", ".mts", ".cts")
REPORT_FORMATS = ("text", "json")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ScanConfig:
    """Settings for a single scan, resolved from defaults, file and CLI flags."""

    root: Path
    exclude_paths: List[str] = field(default_factory=list)
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    workers: Optional[int] = None
    report_format: str = "text"
    verbose: bool = False

    def resolved_workers(self) -> int:
        if self.workers is not None and self.workers > 0:
            return self.workers
        return min(32, (os.cpu_count() or 1) + 4)


def load_config(root: Path) -> ScanConfig:
    """Load configuration for the tree rooted at ``root``.

    A missing config file yields the defaults. Raises InvocationError when
    the file exists but cannot be inspected, and ConfigError when its
    contents are invalid.
    """
    root = Path(root).expanduser()
    config_file = root / CONFIG_FILENAME
    try:
        mode = config_file.stat().st_mode
    except (FileNotFoundError, NotADirectoryError):
        return ScanConfig(root=root)
    except OSError as exc:
        raise InvocationError(f"Cannot access {config_file}: {exc.strerror or exc}") from exc
    if not stat.S_ISREG(mode):
        return ScanConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = ScanConfig(root=root)
    config.exclude_paths = _as_str_list(data.get("exclude_paths"))

    extensions = _as_str_list(data.get("extensions"))
    if extensions:
        config.extensions = [_as_extension(value) for value in extensions]

    if "workers" in data:
        workers = _as_int(data.get("workers"))
        if workers is None or workers < 1:
            raise ConfigError("workers must be a positive integer")
        config.workers = workers

    report_data = _as_dict(data.get("report"))
    report_format = _as_str(report_data.get("format")) if report_data else None
    if report_format is not None:
        if report_format not in REPORT_FORMATS:
            allowed = ", ".join(REPORT_FORMATS)
            raise ConfigError(f"report.format must be one of: {allowed}")
        config.report_format = report_format

    return config


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_extension(value: str) -> str:
    value = value.strip().lower()
    return value if value.startswith(".") else f".{value}"


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_EXTENSIONS",
    "DEFAULT_IGNORED_DIRS",
    "REPORT_FORMATS",
    "ScanConfig",
    "load_config",
]
