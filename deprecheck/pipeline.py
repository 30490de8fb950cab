"""End-to-end pipeline: load sources, build the symbol graph, report diagnostics."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from .analyzer import UsageAnalyzer
from .config import OUTPUT_FORMATS, AnalyzerConfig, ConfigError, resolve_config
from .extract import ExtractedModule, extract_module
from .file_walker import is_package_file, iter_python_files, module_name_for_key
from .graph import SymbolGraph, build_graph
from .log import configure_logging, get_logger
from .models import Diagnostic, Severity
from .parser import PythonParser
from .report import render
from .storage import save_graph

logger = get_logger(__name__)


@dataclass
class AnalysisResult:
    diagnostics: list[Diagnostic]
    symbols: SymbolGraph
    files: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(diagnostic.severity is Severity.ERROR for diagnostic in self.diagnostics)


def load_sources(
    paths: Iterable[str | Path],
    excludes: Iterable[str] | None = None,
    parser: PythonParser | None = None,
) -> tuple[list[ExtractedModule], list[str]]:
    parser = parser or PythonParser()
    excludes = tuple(excludes) if excludes is not None else None
    files: list[str] = []
    for root in paths:
        if not Path(root).exists():
            logger.warning("path does not exist: %s", root)
            continue
        files.extend(iter_python_files(root, excludes))
    files = list(dict.fromkeys(files))

    extracted: list[ExtractedModule] = []
    for path in files:
        try:
            parsed = parser.parse_file(path)
        except OSError as exc:
            logger.warning("cannot read %s: %s", path, exc)
            continue
        extracted.append(extract_module(parsed))
    logger.info("extracted %d of %d files", len(extracted), len(files))
    return extracted, files


def analyze_paths(
    paths: Sequence[str | Path],
    config: AnalyzerConfig | None = None,
    graph_output: str | Path | None = None,
) -> AnalysisResult:
    config = config or AnalyzerConfig()
    extracted, files = load_sources(paths, excludes=config.exclude)
    return _analyze(extracted, files, config, graph_output)


def analyze_sources(
    files: Mapping[str, str],
    config: AnalyzerConfig | None = None,
    graph_output: str | Path | None = None,
) -> AnalysisResult:
    """Analyze in-memory files keyed by relative path, e.g. ``{"pkg/mod.py": "..."}``."""
    config = config or AnalyzerConfig()
    parser = PythonParser()
    extracted = []
    for key, text in files.items():
        parsed = parser.parse_text(text, path=key)
        extracted.append(
            extract_module(
                parsed,
                module=module_name_for_key(key, files.keys()),
                is_package=is_package_file(key),
            )
        )
    return _analyze(extracted, list(files), config, graph_output)


def _analyze(
    extracted: list[ExtractedModule],
    files: list[str],
    config: AnalyzerConfig,
    graph_output: str | Path | None,
) -> AnalysisResult:
    symbols = build_graph(extracted, decorators=config.decorators)
    diagnostics = UsageAnalyzer(symbols, config).analyze()
    logger.info(
        "%d diagnostics, graph has %d nodes and %d edges",
        len(diagnostics),
        symbols.graph.number_of_nodes(),
        symbols.graph.number_of_edges(),
    )
    if graph_output:
        save_graph(symbols.graph, graph_output)
    return AnalysisResult(diagnostics=diagnostics, symbols=symbols, files=files)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deprecheck",
        description="Report uses of definitions marked with @deprecated",
    )
    parser.add_argument("paths", nargs="+", help="Files or directories to analyze")
    parser.add_argument(
        "--severity",
        help="Diagnostic severity: ignore, warning or error (default: warning)",
    )
    parser.add_argument("--format", choices=OUTPUT_FORMATS, help="Output format")
    parser.add_argument("--graph-output", help="Write the symbol graph as node-link JSON")
    parser.add_argument(
        "--exclude",
        action="append",
        help="Directory name to skip (repeatable; replaces the defaults)",
    )
    parser.add_argument(
        "--decorator",
        action="append",
        help="Extra fully qualified decorator name that marks deprecations (repeatable)",
    )
    parser.add_argument("--log-level", help="Logging level (default: WARNING)")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(args.log_level)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        config = resolve_config(
            args.paths[0],
            severity=args.severity,
            format=args.format,
            exclude=args.exclude,
            decorators=args.decorator,
        )
    except ConfigError as exc:
        parser.error(str(exc))

    result = analyze_paths(args.paths, config, graph_output=args.graph_output)
    root = args.paths[0] if len(args.paths) == 1 and Path(args.paths[0]).is_dir() else None
    sys.stdout.write(render(result.diagnostics, config.output_format, root=root) + "\n")
    return 1 if result.has_errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
