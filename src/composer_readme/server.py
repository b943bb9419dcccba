"""MCP server exposing the three tools over stdio.

Run with ``composer-readme serve``. stdout carries the protocol, so all
diagnostics go to stderr through :mod:`composer_readme.output`, which the
``serve`` command configures quiet unless ``--verbose`` is given.

Tool results are returned as a single JSON :class:`~mcp.types.TextContent`.
Failures are returned the same way, as ``{"error": {"code", "message"}}``,
so the client always receives a parseable payload.
"""

from __future__ import annotations

import json
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from composer_readme import __version__
from composer_readme.exceptions import ComposerReadmeError
from composer_readme.models import GlobalConfig
from composer_readme.output import error, info
from composer_readme.service import PackageService
from composer_readme.tools import TOOL_DEFINITIONS, handle_tool_call

SERVER_NAME = "composer-package-readme"


def list_tool_definitions() -> list[Tool]:
    return [
        Tool(
            name=definition["name"],
            description=definition["description"],
            inputSchema=definition["inputSchema"],
        )
        for definition in TOOL_DEFINITIONS.values()
    ]


def error_payload(exc: Exception) -> dict[str, Any]:
    if isinstance(exc, ComposerReadmeError):
        return {"error": exc.to_dict()}
    return {"error": {"code": "INTERNAL_ERROR", "message": str(exc) or type(exc).__name__}}


async def call_tool_json(service: PackageService, name: str, arguments: Any) -> str:
    """Run a tool and serialise its result (or its failure) as JSON text."""
    try:
        result = await handle_tool_call(service, name, arguments)
    except ComposerReadmeError as exc:
        error(f"Tool {name} failed: {exc}")
        return json.dumps(error_payload(exc), indent=2, ensure_ascii=False)
    except Exception as exc:
        error(f"Tool {name} crashed: {type(exc).__name__}: {exc}")
        return json.dumps(error_payload(exc), indent=2, ensure_ascii=False)
    return result.model_dump_json(indent=2)


def create_server(service: PackageService) -> Server:
    """Build an MCP :class:`~mcp.server.Server` bound to *service*."""
    server: Server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return list_tool_definitions()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        text = await call_tool_json(service, name, arguments)
        return [TextContent(type="text", text=text)]

    return server


async def serve(config: GlobalConfig) -> None:
    """Serve MCP requests on stdin/stdout until the client disconnects."""
    async with PackageService(config) as service:
        server = create_server(service)
        info(f"{SERVER_NAME} {__version__} listening on stdio")
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
