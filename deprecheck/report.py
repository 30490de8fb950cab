"""Render diagnostics as text lines or a JSON document."""

from __future__ import annotations

import json
import os
from collections import Counter
from pathlib import Path
from typing import Iterable

from .models import Diagnostic, Severity

UNKNOWN_PATH = "<string>"


def relativize(path: str | None, root: str | Path | None = None) -> str:
    if not path:
        return UNKNOWN_PATH
    if root is None:
        return path
    try:
        return os.path.relpath(path, root)
    except ValueError:
        # different drives on Windows
        return path


def summarize(diagnostics: Iterable[Diagnostic]) -> dict:
    diagnostics = list(diagnostics)
    by_severity = Counter(diagnostic.severity.value for diagnostic in diagnostics)
    return {
        "total": len(diagnostics),
        "errors": by_severity.get(Severity.ERROR.value, 0),
        "warnings": by_severity.get(Severity.WARNING.value, 0),
        "files": len({diagnostic.location.path for diagnostic in diagnostics}),
    }


def format_text(diagnostics: Iterable[Diagnostic], root: str | Path | None = None) -> str:
    diagnostics = list(diagnostics)
    lines = [
        f"{relativize(d.location.path, root)}:{d.location.line}:{d.location.column}: "
        f"{d.severity.value}: {d.message} [{d.code}]"
        for d in diagnostics
    ]
    summary = summarize(diagnostics)
    noun = "diagnostic" if summary["total"] == 1 else "diagnostics"
    lines.append(
        f"{summary['total']} {noun} "
        f"({summary['errors']} errors, {summary['warnings']} warnings)"
    )
    return "\n".join(lines)


def format_json(diagnostics: Iterable[Diagnostic], root: str | Path | None = None) -> str:
    diagnostics = list(diagnostics)
    items = []
    for diagnostic in diagnostics:
        item = diagnostic.to_dict()
        item["path"] = relativize(diagnostic.location.path, root)
        items.append(item)
    return json.dumps({"diagnostics": items, "summary": summarize(diagnostics)}, indent=2)


def render(
    diagnostics: Iterable[Diagnostic],
    output_format: str = "text",
    root: str | Path | None = None,
) -> str:
    if output_format == "json":
        return format_json(diagnostics, root)
    if output_format == "text":
        return format_text(diagnostics, root)
    raise ValueError(f"Unknown output format: {output_format!r}")
