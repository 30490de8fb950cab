from __future__ import annotations

import argparse
import sys

import anyio
from mcp.client.session import ClientSession
from mcp.client.stdio import StdioServerParameters, stdio_client

SAMPLE_FILES = {
    "shop.py": (
        "from typing_extensions import deprecated\n"
        "\n"
        "@deprecated(\"Use Spam instead\")\n"
        "class Ham: ...\n"
    ),
    "main.py": "from shop import Ham\n\nHam()\n",
}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="MCP stdio smoke test")
    parser.add_argument("--path", help="Also run check_path on this file or directory")
    return parser.parse_args()


async def run() -> None:
    args = parse_args()
    params = StdioServerParameters(
        command=sys.executable,
        args=["-m", "deprecheck.mcp_server", "--transport", "stdio"],
    )

    async with stdio_client(params) as (read_stream, write_stream):
        async with ClientSession(read_stream, write_stream) as session:
            await session.initialize()
            tools = await session.list_tools()
            checked = await session.call_tool("check_source", {"files": SAMPLE_FILES})
            path_result = None
            if args.path:
                path_result = await session.call_tool("check_path", {"path": args.path})

    print({
        "tools": [tool.name for tool in tools.tools],
        "check_source": _payload(checked),
        "check_path": _payload(path_result) if path_result is not None else None,
    })


def _payload(result):
    payload = result.structuredContent
    if payload is None and result.content:
        payload = [item.model_dump() for item in result.content]
    return payload


if __name__ == "__main__":
    anyio.run(run)
