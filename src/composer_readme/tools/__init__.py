"""The three read-only query tools and their dispatch table.

:data:`TOOL_DEFINITIONS` holds the JSON-schema descriptions advertised to MCP
clients; :func:`handle_tool_call` validates raw arguments and runs the
matching tool against a :class:`~composer_readme.service.PackageService`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable

from pydantic import BaseModel

from composer_readme.exceptions import InvalidInputError
from composer_readme.tools.info import get_package_info
from composer_readme.tools.readme import get_package_readme
from composer_readme.tools.search import search_packages
from composer_readme.validators import (
    DEFAULT_SEARCH_LIMIT,
    MAX_SEARCH_LIMIT,
    MIN_SEARCH_LIMIT,
    PACKAGE_TYPES,
    validate_info_params,
    validate_readme_params,
    validate_search_params,
)

if TYPE_CHECKING:
    from composer_readme.service import PackageService

README_TOOL = "get_readme_from_composer"
INFO_TOOL = "get_package_info_from_composer"
SEARCH_TOOL = "search_packages_from_composer"

_PACKAGE_NAME_SCHEMA = {
    "type": "string",
    "description": "The name of the Composer package (vendor/package format)",
}

TOOL_DEFINITIONS: dict[str, dict[str, Any]] = {
    README_TOOL: {
        "name": README_TOOL,
        "description": "Get Composer package README and usage examples from Packagist",
        "inputSchema": {
            "type": "object",
            "properties": {
                "package_name": _PACKAGE_NAME_SCHEMA,
                "version": {
                    "type": "string",
                    "description": 'The version of the package (default: "latest")',
                    "default": "latest",
                },
                "include_examples": {
                    "type": "boolean",
                    "description": "Whether to include usage examples (default: true)",
                    "default": True,
                },
            },
            "required": ["package_name"],
        },
    },
    INFO_TOOL: {
        "name": INFO_TOOL,
        "description": "Get Composer package basic information and dependencies from Packagist",
        "inputSchema": {
            "type": "object",
            "properties": {
                "package_name": _PACKAGE_NAME_SCHEMA,
                "include_dependencies": {
                    "type": "boolean",
                    "description": "Whether to include dependencies (default: true)",
                    "default": True,
                },
                "include_dev_dependencies": {
                    "type": "boolean",
                    "description": "Whether to include development dependencies (default: false)",
                    "default": False,
                },
                "include_suggestions": {
                    "type": "boolean",
                    "description": "Whether to include suggested packages (default: false)",
                    "default": False,
                },
            },
            "required": ["package_name"],
        },
    },
    SEARCH_TOOL: {
        "name": SEARCH_TOOL,
        "description": "Search for Composer packages in Packagist",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "The search query"},
                "limit": {
                    "type": "integer",
                    "description": f"Maximum number of results to return (default: {DEFAULT_SEARCH_LIMIT})",
                    "default": DEFAULT_SEARCH_LIMIT,
                    "minimum": MIN_SEARCH_LIMIT,
                    "maximum": MAX_SEARCH_LIMIT,
                },
                "quality": {
                    "type": "number",
                    "description": "Minimum quality score (0-1)",
                    "minimum": 0,
                    "maximum": 1,
                },
                "popularity": {
                    "type": "number",
                    "description": "Minimum popularity score (0-1)",
                    "minimum": 0,
                    "maximum": 1,
                },
                "type": {
                    "type": "string",
                    "description": "Package type filter",
                    "enum": list(PACKAGE_TYPES),
                },
            },
            "required": ["query"],
        },
    },
}


async def _call_readme(service: PackageService, args: Any) -> BaseModel:
    return await get_package_readme(service, validate_readme_params(args))


async def _call_info(service: PackageService, args: Any) -> BaseModel:
    return await get_package_info(service, validate_info_params(args))


async def _call_search(service: PackageService, args: Any) -> BaseModel:
    return await search_packages(service, validate_search_params(args))


_HANDLERS: dict[str, Callable[[PackageService, Any], Awaitable[BaseModel]]] = {
    README_TOOL: _call_readme,
    INFO_TOOL: _call_info,
    SEARCH_TOOL: _call_search,
}


async def handle_tool_call(service: PackageService, name: str, args: Any) -> BaseModel:
    """Validate *args* and run the tool called *name*.

    Raises:
        InvalidInputError: For an unknown tool or invalid arguments.
        ComposerReadmeError: Whatever the tool itself raises.
    """
    handler = _HANDLERS.get(name)
    if handler is None:
        raise InvalidInputError(f"Unknown tool: {name}")
    return await handler(service, args if args is not None else {})


__all__ = [
    "INFO_TOOL",
    "README_TOOL",
    "SEARCH_TOOL",
    "TOOL_DEFINITIONS",
    "get_package_info",
    "get_package_readme",
    "handle_tool_call",
    "search_packages",
]
