#!/usr/bin/env python3
"""
AntV MCP Server

An MCP server that helps AI agents answer AntV visualization questions
(G2, G6, L7, X6, F2, S2) from official documentation.

Two tools, called in order by the agent:
- extract_antv_topic: builds the topic/intent extraction prompt
- query_antv_document: fetches Context7 documentation for the result
"""

import argparse
import asyncio
import contextlib
import logging
import os
import sys
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

import uvicorn
from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from pydantic import BaseModel
from starlette.applications import Starlette
from starlette.routing import Mount

from antv_docs import ToolResult, extract_topic, query_document
from antv_docs.extract_topic import DESCRIPTION as EXTRACT_DESCRIPTION
from antv_docs.extract_topic import NAME as EXTRACT_NAME
from antv_docs.query_document import DESCRIPTION as QUERY_DESCRIPTION
from antv_docs.query_document import NAME as QUERY_NAME
from antv_docs.query_document import FallbackSource
from antv_docs.schemas import ExtractTopicInput, QueryDocumentInput
from ask_deepwiki import DeepWikiConnection, ask_repository

SERVER_NAME = "mcp-server-antv"
SERVER_VERSION = "0.2.0"

# LOGGER_LEVEL: 0 debug, 1 info, 2 warning, 3 error
_LOG_LEVELS = {0: logging.DEBUG, 1: logging.INFO, 2: logging.WARNING, 3: logging.ERROR}


def get_log_level(value: Optional[str] = None) -> int:
    if value is None:
        value = os.getenv("LOGGER_LEVEL", "1")
    try:
        return _LOG_LEVELS.get(int(value), logging.INFO)
    except ValueError:
        return logging.INFO


# Configure logging (stderr: stdout carries the stdio transport)
logging.basicConfig(
    level=get_log_level(),
    stream=sys.stderr,
    format="%(asctime)s [%(name)s] [%(levelname)s] %(message)s"
)
logger = logging.getLogger("antv-mcp")

DEEPWIKI_FALLBACK = os.getenv("ANTV_DEEPWIKI_FALLBACK", "").lower() in ("1", "true", "yes")


# ============================================================================
# Tool Registry
# ============================================================================

ToolRunner = Callable[..., Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolSpec:
    """Everything the server needs to publish and dispatch one tool."""
    name: str
    description: str
    input_model: Type[BaseModel]
    run: ToolRunner
    uses_fallback: bool = False

    def definition(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_model.model_json_schema(),
            annotations=types.ToolAnnotations(readOnlyHint=True, openWorldHint=True),
        )


TOOLS: Dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec(EXTRACT_NAME, EXTRACT_DESCRIPTION, ExtractTopicInput, extract_topic),
        ToolSpec(QUERY_NAME, QUERY_DESCRIPTION, QueryDocumentInput, query_document, uses_fallback=True),
    )
}


def list_tool_definitions() -> List[types.Tool]:
    return [spec.definition() for spec in TOOLS.values()]


# ============================================================================
# Shared Utilities
# ============================================================================

def to_call_tool_result(result: ToolResult) -> types.CallToolResult:
    """Convert a ToolResult into the MCP wire type (metadata goes to _meta)."""
    return types.CallToolResult.model_validate(result.to_dict())


def format_error(error: Exception, context: str) -> str:
    """
    Format error message for LLM consumption with actionable guidance.

    Args:
        error: The exception that occurred
        context: Context about what operation failed

    Returns:
        Human-readable error message with suggested next steps
    """
    error_msg = f"❌ Error during {context}: {error}"

    if "timeout" in str(error).lower() or "connection" in str(error).lower():
        error_msg += "\n\nSuggestion: Check network access to the documentation service and try again"
    else:
        error_msg += f"\n\nSuggestion: Call {EXTRACT_NAME} first, then {QUERY_NAME} with its output"

    return error_msg


async def dispatch_tool(
    name: str,
    arguments: Optional[Dict[str, Any]],
    fallback: Optional[FallbackSource] = None
) -> types.CallToolResult:
    """
    Run a tool by name and wrap the outcome for the transport.

    Tools report their own failures as error results; anything that
    still escapes is logged and turned into an error result here.
    """
    spec = TOOLS.get(name)
    if spec is None:
        return to_call_tool_result(ToolResult(
            text=f"❌ Unknown tool '{name}'. Available tools: {', '.join(TOOLS)}",
            is_error=True,
            metadata={"error": f"Unknown tool: {name}"},
        ))

    try:
        if spec.uses_fallback:
            result = await spec.run(arguments, fallback=fallback)
        else:
            result = await spec.run(arguments)
    except Exception as e:
        error_msg = format_error(e, f"running {name}")
        logger.error(error_msg, exc_info=True)
        result = ToolResult(text=error_msg, is_error=True, metadata={"error": str(e)})

    return to_call_tool_result(result)


# ============================================================================
# Server
# ============================================================================

def create_server(fallback: Optional[FallbackSource] = None) -> Server:
    """
    Build the MCP server with both tools registered.

    Args:
        fallback: Optional secondary documentation source for query_antv_document
    """
    app = Server(SERVER_NAME, version=SERVER_VERSION)

    @app.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        return list_tool_definitions()

    @app.call_tool(validate_input=False)
    async def handle_call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
        logger.debug(f"Calling tool {name}")
        return await dispatch_tool(name, arguments, fallback)

    logger.info("AntV MCP Server initialized")
    return app


async def run_stdio(app: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        logger.info("AntV MCP Server started with stdio transport")
        await app.run(
            read_stream,
            write_stream,
            app.create_initialization_options()
        )


async def run_http(app: Server, host: str, port: int) -> None:
    session_manager = StreamableHTTPSessionManager(app=app)

    async def handle_streamable_http(scope, receive, send) -> None:
        await session_manager.handle_request(scope, receive, send)

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette):
        async with session_manager.run():
            logger.info(f"AntV MCP Server started with http transport on http://{host}:{port}/mcp")
            yield

    starlette_app = Starlette(
        routes=[Mount("/mcp", app=handle_streamable_http)],
        lifespan=lifespan,
    )
    config = uvicorn.Config(starlette_app, host=host, port=port, log_level=logging.getLevelName(logger.getEffectiveLevel()).lower())
    await uvicorn.Server(config).serve()


# ============================================================================
# Server Entry Point
# ============================================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse CLI options; unknown flags are ignored."""
    parser = argparse.ArgumentParser(prog=SERVER_NAME, description="AntV documentation MCP server")
    parser.add_argument("--transport", choices=["stdio", "http"], default="stdio", help="Transport (default: stdio)")
    parser.add_argument("--port", type=int, default=3000, help="Port for http transport (default: 3000)")
    parser.add_argument("--host", default="127.0.0.1", help="Host for http transport (default: 127.0.0.1)")
    args, unknown = parser.parse_known_args(argv)
    if unknown:
        logger.debug(f"Ignoring unknown arguments: {' '.join(unknown)}")
    return args


def _fatal(message: str, exc_info: Any = None) -> None:
    logger.error(message, exc_info=exc_info)
    logger.info("Shutting down AntV MCP Server...")
    logging.shutdown()
    os._exit(1)


def _handle_loop_exception(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
    error = context.get("exception")
    if error is None or isinstance(error, ConnectionError):
        logger.warning(f"Event loop: {context.get('message')}: {error}")
        return
    _fatal(f"Unhandled exception in event loop: {context.get('message')}", exc_info=error)


def _handle_uncaught(exc_type, exc, tb) -> None:
    _fatal("Uncaught exception", exc_info=(exc_type, exc, tb))


async def main(args: argparse.Namespace) -> None:
    """Run the MCP server with the selected transport."""
    asyncio.get_running_loop().set_exception_handler(_handle_loop_exception)

    deepwiki = DeepWikiConnection() if DEEPWIKI_FALLBACK else None
    fallback = partial(ask_repository, deepwiki) if deepwiki else None
    app = create_server(fallback)

    try:
        if args.transport == "http":
            await run_http(app, args.host, args.port)
        else:
            await run_stdio(app)
    finally:
        if deepwiki is not None:
            await deepwiki.aclose()
        logger.info("AntV MCP Server shutdown complete")


def run(argv: Optional[List[str]] = None) -> None:
    """Console entry point."""
    args = parse_args(argv)
    sys.excepthook = _handle_uncaught
    try:
        asyncio.run(main(args))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as e:
        logger.error(f"Failed to start server: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
