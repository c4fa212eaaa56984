"""Rendering of scan results as text or JSON reports."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from .models import CRITICAL, REDUNDANT, WARNING, DuplicateGroup, ScanResult

_RULE = "============================================"

_LABELS = {
    CRITICAL: "CRITICAL:",
    WARNING: "WARNING:",
    REDUNDANT: "REDUNDANT:",
}


class ReportEmitter:
    """Turns a :class:`ScanResult` into the user-facing report."""

    def __init__(self, *, report_format: str = "text", verbose: bool = False) -> None:
        if report_format not in {"text", "json"}:
            raise ValueError(f"Unsupported report format: {report_format}")
        self.report_format = report_format
        self.verbose = verbose

    def render(self, result: ScanResult) -> str:
        if self.report_format == "json":
            return json.dumps(self.to_dict(result), indent=2, sort_keys=True)
        return self.render_text(result)

    def render_text(self, result: ScanResult) -> str:
        lines: List[str] = []
        for group in result.groups:
            lines.append(_RULE)
            lines.append(f"{_LABELS[group.severity]} {_headline(group)}")
            lines.append(f"  tags: {', '.join(group.tags)}")
            if group.shape is not None:
                lines.append(f"  shape: {group.shape.render()}")
            for member in group.members:
                lines.append(f"  - {member.path}:{member.line} {member.name} ({member.kind})")
        if result.groups:
            lines.append(_RULE)

        counts = _severity_counts(result.groups)
        lines.append(
            f"Scanned {result.files_scanned} files, found {result.declarations} type "
            f"declarations ({result.unique_names} unique names)."
        )
        lines.append(f"Critical issues: {counts[CRITICAL]}")
        lines.append(f"Warnings: {counts[WARNING]}")
        lines.append(f"Redundant shapes: {counts[REDUNDANT]}")

        if self.verbose:
            lines.append(f"Diagnostics: {len(result.diagnostics)}")
            for diagnostic in result.diagnostics:
                lines.append(f"  [{diagnostic.kind}] {diagnostic.render()}")
        return "\n".join(lines)

    def to_dict(self, result: ScanResult) -> Dict[str, Any]:
        counts = _severity_counts(result.groups)
        payload: Dict[str, Any] = {
            "root": result.root,
            "summary": {
                "files_scanned": result.files_scanned,
                "declarations": result.declarations,
                "unique_names": result.unique_names,
                "critical": counts[CRITICAL],
                "warnings": counts[WARNING],
                "redundant": counts[REDUNDANT],
            },
            "groups": [_group_to_dict(group) for group in result.groups],
        }
        if self.verbose:
            payload["summary"]["diagnostics"] = len(result.diagnostics)
            payload["diagnostics"] = [
                {
                    "kind": diagnostic.kind,
                    "path": diagnostic.path,
                    "line": diagnostic.line,
                    "message": diagnostic.message,
                }
                for diagnostic in result.diagnostics
            ]
        return payload


def _headline(group: DuplicateGroup) -> str:
    count = len(group.members)
    if group.severity == CRITICAL:
        return (
            f"'{group.name}' is declared {count} times with the same name and body. "
            "Consider merging this to one type definition."
        )
    if group.severity == WARNING:
        return f"'{group.name}' is declared {count} times with the same name but different bodies."
    names = ", ".join(dict.fromkeys(f"'{member.name}'" for member in group.members))
    return f"{names} share the same shape across {count} declarations."


def _severity_counts(groups: List[DuplicateGroup]) -> Dict[str, int]:
    counts = {CRITICAL: 0, WARNING: 0, REDUNDANT: 0}
    for group in groups:
        counts[group.severity] += 1
    return counts


def _group_to_dict(group: DuplicateGroup) -> Dict[str, Any]:
    return {
        "severity": group.severity,
        "tags": list(group.tags),
        "name": group.name,
        "shape": group.shape.render() if group.shape is not None else None,
        "members": [
            {
                "name": member.name,
                "path": member.path,
                "line": member.line,
                "column": member.column,
                "kind": member.kind,
                "exported": member.exported,
                "type_params": list(member.type_params),
            }
            for member in group.members
        ],
    }


__all__ = ["ReportEmitter"]
