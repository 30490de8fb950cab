"""File walking and module naming utilities."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Iterable


DEFAULT_EXCLUDES = {".venv", "venv", "__pycache__", ".git", ".hg", ".svn", ".tox", "node_modules"}
SOURCE_SUFFIXES = (".py", ".pyi")


def iter_python_files(root: str | Path, excludes: Iterable[str] | None = None) -> list[str]:
    root_path = Path(root)
    if root_path.is_file():
        return [str(root_path)] if root_path.suffix in SOURCE_SUFFIXES else []

    exclude_set = set(DEFAULT_EXCLUDES if excludes is None else excludes)
    matches: list[str] = []

    for suffix in SOURCE_SUFFIXES:
        for path in root_path.rglob(f"*{suffix}"):
            relative = path.relative_to(root_path)
            if any(part in exclude_set for part in relative.parts):
                continue
            matches.append(str(path))

    return sorted(matches)


def module_name_for(path: str | Path) -> str:
    """Derive the dotted module name from the package layout around ``path``.

    Parent directories that hold an ``__init__`` file are package components;
    the first one without it ends the name.
    """
    file_path = Path(path).resolve()
    parts = [] if file_path.stem == "__init__" else [file_path.stem]
    directory = file_path.parent
    while _is_package(directory):
        parts.insert(0, directory.name)
        if directory.parent == directory:
            break
        directory = directory.parent
    return ".".join(parts) or file_path.parent.name


def is_package_file(path: str | Path) -> bool:
    return Path(path).stem == "__init__"


def _is_package(directory: Path) -> bool:
    return (directory / "__init__.py").is_file() or (directory / "__init__.pyi").is_file()


def module_name_for_key(key: str, keys: Iterable[str]) -> str:
    """Module name for an in-memory file, given the relative paths of its siblings."""
    known = {PurePosixPath(item.replace("\\", "/")) for item in keys}
    path = PurePosixPath(key.replace("\\", "/"))
    parts = [] if path.stem == "__init__" else [path.stem]
    directory = path.parent
    while directory.name and (
        directory / "__init__.py" in known or directory / "__init__.pyi" in known
    ):
        parts.insert(0, directory.name)
        directory = directory.parent
    return ".".join(parts) or directory.name or "__main__"
