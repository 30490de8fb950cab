"""MCP server exposing the deprecation checker as tools."""

from __future__ import annotations

import argparse
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .config import resolve_config
from .log import configure_logging
from .pipeline import AnalysisResult, analyze_paths, analyze_sources
from .report import relativize, summarize


def _payload(result: AnalysisResult, root: str | Path | None = None) -> dict:
    diagnostics = []
    for diagnostic in result.diagnostics:
        item = diagnostic.to_dict()
        item["path"] = relativize(diagnostic.location.path, root)
        diagnostics.append(item)
    return {"diagnostics": diagnostics, "summary": summarize(result.diagnostics)}


def check_path(path: str, severity: str | None = None) -> dict:
    target = Path(path)
    if not target.exists():
        return {"error": f"Path not found: {path}"}
    config = resolve_config(target, severity=severity)
    root = target if target.is_dir() else None
    return _payload(analyze_paths([target], config), root)


def check_source(files: dict[str, str], severity: str | None = None) -> dict:
    config = resolve_config(severity=severity)
    return _payload(analyze_sources(files, config))


def list_deprecations(path: str) -> dict:
    """List every deprecated definition and overload found under ``path``."""
    target = Path(path)
    if not target.exists():
        return {"error": f"Path not found: {path}"}
    config = resolve_config(target)
    result = analyze_paths([target], config)
    root = target if target.is_dir() else None

    items = []
    for info in result.symbols.deprecated_definitions():
        location = info.definition.location
        entry = {
            "target": info.node_id,
            "qualname": f"{info.source.module}.{info.qualname}",
            "kind": info.kind,
            "path": relativize(location.path, root),
            "line": location.line,
            "message": info.marker.message if info.marker else None,
            "overloads": [
                {"index": item.index, "line": item.location.line, "message": item.marker.message}
                for item in info.overloads
                if item.marker is not None
            ],
        }
        items.append(entry)
    return {"deprecations": items, "count": len(items)}


def create_server(host: str = "127.0.0.1", port: int = 8001) -> FastMCP:
    mcp = FastMCP(
        name="deprecheck",
        instructions=(
            "Find uses of definitions marked with @deprecated. Use list_deprecations() "
            "to see what is deprecated, then check_path() or check_source() to find uses."
        ),
        json_response=True,
        host=host,
        port=port,
    )

    @mcp.tool(name="check_path")
    def check_path_tool(path: str, severity: str | None = None) -> dict:
        """Analyze a file or directory and return deprecation diagnostics."""
        return check_path(path, severity=severity)

    @mcp.tool(name="check_source")
    def check_source_tool(files: dict[str, str], severity: str | None = None) -> dict:
        """Analyze inline source files keyed by relative path."""
        return check_source(files, severity=severity)

    @mcp.tool(name="list_deprecations")
    def list_deprecations_tool(path: str) -> dict:
        """List deprecated classes, functions and overloads under a path."""
        return list_deprecations(path)

    return mcp


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the deprecheck MCP server")
    parser.add_argument(
        "--transport",
        default="stdio",
        choices=["stdio", "sse", "streamable-http"],
        help="Transport type",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Host for HTTP transports")
    parser.add_argument("--port", type=int, default=8001, help="Port for HTTP transports")
    parser.add_argument("--log-level", help="Logging level (default: WARNING)")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    configure_logging(args.log_level)
    mcp = create_server(host=args.host, port=args.port)
    mcp.run(transport=args.transport)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
