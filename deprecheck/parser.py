"""Tree-sitter based parser for Python sources and stubs."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from tree_sitter import Parser

from .ts_lang import load_python_language


@dataclass
class ParsedSource:
    tree: object
    source_bytes: bytes
    path: str | None = None

    @property
    def is_stub(self) -> bool:
        return bool(self.path) and Path(self.path).suffix == ".pyi"


class PythonParser:
    def __init__(self) -> None:
        language = load_python_language()
        try:
            self._parser = Parser(language)
        except TypeError:  # pragma: no cover - bindings before 0.22
            self._parser = Parser()
            self._parser.set_language(language)

    def parse_bytes(self, source_bytes: bytes, path: str | None = None) -> ParsedSource:
        tree = self._parser.parse(source_bytes)
        return ParsedSource(tree=tree, source_bytes=source_bytes, path=path)

    def parse_text(self, source_text: str, path: str | None = None) -> ParsedSource:
        return self.parse_bytes(source_text.encode("utf-8"), path=path)

    def parse_file(self, path: str) -> ParsedSource:
        with open(path, "rb") as handle:
            source_bytes = handle.read()
        return self.parse_bytes(source_bytes, path=path)
