"""Analyzer configuration: defaults, pyproject.toml, environment, overrides."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .file_walker import DEFAULT_EXCLUDES
from .models import Severity

DEFAULT_DECORATORS = (
    "typing_extensions.deprecated",
    "warnings.deprecated",
    "deprecheck.deprecated",
    "deprecheck.marker.deprecated",
)
OUTPUT_FORMATS = ("text", "json")


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class AnalyzerConfig:
    severity: Severity = Severity.WARNING
    decorators: tuple[str, ...] = DEFAULT_DECORATORS
    exclude: tuple[str, ...] = tuple(sorted(DEFAULT_EXCLUDES))
    output_format: str = "text"


def find_pyproject(start: str | Path | None) -> Path | None:
    if start is None:
        return None
    current = Path(start).resolve()
    if current.is_file():
        current = current.parent
    for candidate in (current, *current.parents):
        path = candidate / "pyproject.toml"
        if path.is_file():
            return path
    return None


def load_pyproject_section(path: str | Path) -> dict[str, Any]:
    try:
        data = tomllib.loads(Path(path).read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    section = data.get("tool", {}).get("deprecheck", {})
    if not isinstance(section, dict):
        raise ConfigError(f"[tool.deprecheck] in {path} must be a table")
    return section


def resolve_config(root: str | Path | None = None, **overrides: Any) -> AnalyzerConfig:
    """Build the effective configuration.

    Later layers win: defaults, ``[tool.deprecheck]`` from the nearest
    pyproject.toml above ``root``, ``DEPRECHECK_*`` environment variables,
    then keyword overrides whose value is not ``None``.
    """
    config = AnalyzerConfig()

    pyproject = find_pyproject(root)
    if pyproject is not None:
        config = _apply(config, load_pyproject_section(pyproject), source=str(pyproject))

    env: dict[str, Any] = {}
    if os.getenv("DEPRECHECK_SEVERITY"):
        env["severity"] = os.getenv("DEPRECHECK_SEVERITY")
    if os.getenv("DEPRECHECK_DECORATORS"):
        env["decorators"] = _split(os.getenv("DEPRECHECK_DECORATORS", ""))
    if os.getenv("DEPRECHECK_EXCLUDE"):
        env["exclude"] = _split(os.getenv("DEPRECHECK_EXCLUDE", ""))
    if os.getenv("DEPRECHECK_FORMAT"):
        env["format"] = os.getenv("DEPRECHECK_FORMAT")
    config = _apply(config, env, source="environment")

    explicit = {key: value for key, value in overrides.items() if value is not None}
    return _apply(config, explicit, source="arguments")


def _apply(config: AnalyzerConfig, values: dict[str, Any], source: str) -> AnalyzerConfig:
    changes: dict[str, Any] = {}
    for key, value in values.items():
        if key == "severity":
            try:
                changes["severity"] = Severity.parse(value)
            except ValueError as exc:
                raise ConfigError(f"{source}: {exc}") from exc
        elif key == "decorators":
            # extra decorator names extend the built-in ones
            names = _as_names(value, key, source)
            changes["decorators"] = tuple(dict.fromkeys((*DEFAULT_DECORATORS, *names)))
        elif key == "exclude":
            changes["exclude"] = _as_names(value, key, source)
        elif key in ("format", "output_format"):
            if value not in OUTPUT_FORMATS:
                raise ConfigError(f"{source}: unknown output format {value!r}")
            changes["output_format"] = value
        else:
            raise ConfigError(f"{source}: unknown option {key!r}")
    return replace(config, **changes)


def _as_names(value: Any, key: str, source: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return _split(value)
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise ConfigError(f"{source}: {key} must be a list of strings")


def _split(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())
