"""MCP protocol wiring and stdio entry point.

Setup:
  1. pip install -e .
  2. Set TWENTYI_API_KEY, TWENTYI_OAUTH_KEY and TWENTYI_COMBINED_KEY
     (or place ignor.txt with the key lines from the 20i control panel in
     the working directory)
  3. Add ``twentyi-mcp`` as a stdio server in the MCP client config
"""

import asyncio
from typing import List

import structlog
from dotenv import load_dotenv
from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from twentyi_mcp import __version__
from twentyi_mcp.config import SERVER_NAME
from twentyi_mcp.context import ServerContext
from twentyi_mcp.errors import CredentialError
from twentyi_mcp.log import configure_logging
from twentyi_mcp.modules import load_all_modules
from twentyi_mcp.registry import ToolRegistry

logger = structlog.get_logger()


def build_server(registry: ToolRegistry) -> Server:
    """Expose ``registry`` through the two MCP tool operations."""
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return registry.list_tools()

    # Registered directly so that McpError from the dispatcher reaches the
    # client as a JSON-RPC error with its code.
    async def call_tool(request: types.CallToolRequest) -> types.ServerResult:
        content = await registry.dispatch(request.params.name, request.params.arguments)
        return types.ServerResult(types.CallToolResult(content=content, isError=False))

    server.request_handlers[types.CallToolRequest] = call_tool
    return server


async def serve(ctx: ServerContext) -> None:
    async with ctx:
        server = build_server(load_all_modules(ctx))
        async with stdio_server() as (read_stream, write_stream):
            logger.info("server_ready", name=SERVER_NAME, version=__version__)
            await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    load_dotenv()
    configure_logging()
    try:
        ctx = ServerContext.from_environment()
    except CredentialError as e:
        logger.error("startup_failed", error=e.message)
        raise SystemExit(1) from e
    asyncio.run(serve(ctx))


if __name__ == "__main__":
    main()
