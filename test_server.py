"""
Tests for the MCP server wiring: tool listing, dispatch, CLI options.

Run with: pytest test_server.py
"""

import logging
from unittest.mock import AsyncMock, patch

import pytest
from mcp import types
from mcp.server import Server

import server
from antv_docs import Context7Client, DocumentationFound


class TestToolListing:
    def test_lists_both_tools(self):
        tools = server.list_tool_definitions()

        assert [tool.name for tool in tools] == ["extract_antv_topic", "query_antv_document"]
        for tool in tools:
            assert tool.description
            assert tool.inputSchema["type"] == "object"
            assert tool.annotations.readOnlyHint is True

    def test_input_schemas(self):
        extract, query = server.list_tool_definitions()
        assert extract.inputSchema["required"] == ["query"]
        assert query.inputSchema["required"] == ["library", "query", "topic", "intent"]

    def test_create_server_registers_handlers(self):
        app = server.create_server()

        assert isinstance(app, Server)
        assert types.ListToolsRequest in app.request_handlers
        assert types.CallToolRequest in app.request_handlers


class TestDispatch:
    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        result = await server.dispatch_tool("resolve_library", {})

        assert result.isError is True
        assert "Unknown tool 'resolve_library'" in result.content[0].text

    @pytest.mark.asyncio
    async def test_extract_topic(self):
        result = await server.dispatch_tool(
            "extract_antv_topic", {"query": "How do I draw a graph?", "library": "g6"}
        )

        assert not result.isError
        assert "# AntV Query Analysis & Topic Extraction" in result.content[0].text
        assert result.meta["library"] == "g6"
        assert result.meta["promptGenerated"] is True

    @pytest.mark.asyncio
    async def test_extract_topic_validation_error(self):
        result = await server.dispatch_tool("extract_antv_topic", {"query": ""})

        assert result.isError is True
        assert result.meta["promptGenerated"] is False

    @pytest.mark.asyncio
    async def test_query_document(self):
        fetch = AsyncMock(return_value=DocumentationFound("DOC TEXT"))
        with patch.object(Context7Client, "fetch_documentation", fetch):
            result = await server.dispatch_tool(
                "query_antv_document",
                {"library": "g2", "query": "bar chart?", "topic": "bar chart", "intent": "implement"},
            )

        assert not result.isError
        assert "DOC TEXT" in result.content[0].text
        assert result.meta["hasDocumentation"] is True
        fetch.assert_awaited_once_with("/antvis/g2", "bar chart", 5000)

    @pytest.mark.asyncio
    async def test_query_document_uses_fallback(self):
        fallback = AsyncMock(return_value=DocumentationFound("FROM FALLBACK"))
        fetch = AsyncMock(return_value=DocumentationFound(" "))
        with patch.object(Context7Client, "fetch_documentation", fetch):
            result = await server.dispatch_tool(
                "query_antv_document",
                {"library": "x6", "query": "custom ports?", "topic": "ports", "intent": "learn"},
                fallback=fallback,
            )

        fallback.assert_awaited_once_with("x6", "custom ports?")
        assert "FROM FALLBACK" in result.content[0].text

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_error_result(self):
        with patch.dict(
            server.TOOLS,
            {"extract_antv_topic": server.ToolSpec(
                "extract_antv_topic", "d", server.ExtractTopicInput, AsyncMock(side_effect=RuntimeError("kaboom"))
            )},
        ):
            result = await server.dispatch_tool("extract_antv_topic", {"query": "q"})

        assert result.isError is True
        assert "kaboom" in result.content[0].text
        assert result.meta["error"] == "kaboom"


class TestLoopExceptionHandler:
    @pytest.mark.parametrize(
        "context",
        [
            {"message": "Task was destroyed but it is pending!"},
            {"message": "Fatal read error on socket transport", "exception": ConnectionResetError(104, "reset")},
        ],
    )
    def test_benign_contexts_only_log(self, context):
        with patch.object(server, "_fatal") as fatal:
            server._handle_loop_exception(None, context)
        fatal.assert_not_called()

    def test_unhandled_exception_is_fatal(self):
        error = RuntimeError("boom")
        with patch.object(server, "_fatal") as fatal:
            server._handle_loop_exception(None, {"message": "Task exception was never retrieved", "exception": error})
        fatal.assert_called_once()
        assert fatal.call_args.kwargs["exc_info"] is error


class TestCommandLine:
    def test_defaults(self):
        args = server.parse_args([])
        assert (args.transport, args.port, args.host) == ("stdio", 3000, "127.0.0.1")

    def test_http_options(self):
        args = server.parse_args(["--transport", "http", "--port", "8080", "--host", "0.0.0.0"])
        assert (args.transport, args.port, args.host) == ("http", 8080, "0.0.0.0")

    def test_unknown_arguments_ignored(self):
        args = server.parse_args(["--verbose", "--transport", "http"])
        assert args.transport == "http"

    def test_invalid_transport(self):
        with pytest.raises(SystemExit):
            server.parse_args(["--transport", "websocket"])

    @pytest.mark.parametrize(
        "value, level",
        [
            ("0", logging.DEBUG),
            ("1", logging.INFO),
            ("2", logging.WARNING),
            ("3", logging.ERROR),
            ("7", logging.INFO),
            ("verbose", logging.INFO),
        ],
    )
    def test_log_level(self, value, level):
        assert server.get_log_level(value) == level
