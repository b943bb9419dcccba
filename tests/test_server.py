"""Tests for the MCP server surface: tool listing and JSON tool results."""

from __future__ import annotations

import json

import httpx
from mcp.server import Server
from mcp.types import Tool

from conftest import Router, build_service, widgets_routes

from composer_readme.exceptions import PackageNotFoundError, RateLimitError
from composer_readme.server import (
    call_tool_json,
    create_server,
    error_payload,
    list_tool_definitions,
)


class TestToolListing:
    def test_lists_three_tools(self) -> None:
        tools = list_tool_definitions()
        assert all(isinstance(tool, Tool) for tool in tools)
        assert [tool.name for tool in tools] == [
            "get_readme_from_composer",
            "get_package_info_from_composer",
            "search_packages_from_composer",
        ]

    def test_schemas_carried_over(self) -> None:
        readme = list_tool_definitions()[0]
        assert readme.inputSchema["required"] == ["package_name"]
        assert "version" in readme.inputSchema["properties"]


class TestErrorPayload:
    def test_known_error(self) -> None:
        payload = error_payload(RateLimitError("Packagist", retry_after=30))
        assert payload["error"]["code"] == "RATE_LIMIT_EXCEEDED"
        assert payload["error"]["status_code"] == 429
        assert payload["error"]["details"] == {"retry_after": 30}

    def test_not_found(self) -> None:
        payload = error_payload(PackageNotFoundError("acme/missing"))
        assert payload["error"]["status_code"] == 404
        assert "acme/missing" in payload["error"]["message"]

    def test_unexpected_error(self) -> None:
        assert error_payload(RuntimeError("boom")) == {
            "error": {"code": "INTERNAL_ERROR", "message": "boom"}
        }

    def test_unexpected_error_without_message(self) -> None:
        assert error_payload(KeyError())["error"]["message"] == "KeyError"


class TestCallToolJson:
    async def test_success_is_response_json(self) -> None:
        async with build_service(Router(widgets_routes())) as service:
            text = await call_tool_json(
                service, "get_package_info_from_composer", {"package_name": "acme/widgets"}
            )
        data = json.loads(text)
        assert data["package_name"] == "acme/widgets"
        assert data["latest_version"] == "1.10.0"
        assert data["exists"] is True

    async def test_invalid_input_is_error_json(self, capsys) -> None:
        async with build_service(Router()) as service:
            text = await call_tool_json(service, "search_packages_from_composer", {"query": "  "})
        assert json.loads(text)["error"]["code"] == "INVALID_INPUT"
        assert "Tool search_packages_from_composer failed" in capsys.readouterr().err

    async def test_unknown_tool(self) -> None:
        async with build_service(Router()) as service:
            text = await call_tool_json(service, "publish_package", {})
        error = json.loads(text)["error"]
        assert error["code"] == "INVALID_INPUT"
        assert "publish_package" in error["message"]

    async def test_upstream_failure(self) -> None:
        router = Router({"/search.json": httpx.Response(429, headers={"Retry-After": "5"})})
        async with build_service(router) as service:
            text = await call_tool_json(service, "search_packages_from_composer", {"query": "log"})
        assert json.loads(text)["error"]["code"] == "RATE_LIMIT_EXCEEDED"

    async def test_unexpected_exception_reported(self, capsys) -> None:
        router = Router({"/search.json": RuntimeError("socket exploded")})
        async with build_service(router) as service:
            text = await call_tool_json(service, "search_packages_from_composer", {"query": "log"})
        error = json.loads(text)["error"]
        assert error == {"code": "INTERNAL_ERROR", "message": "socket exploded"}
        assert "crashed: RuntimeError: socket exploded" in capsys.readouterr().err


async def test_create_server() -> None:
    async with build_service(Router()) as service:
        server = create_server(service)
        assert isinstance(server, Server)
        assert server.name == "composer-package-readme"
