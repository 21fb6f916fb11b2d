"""
MCP server implementation for the FAQ search service.

This module implements the Model Context Protocol server that exposes the
FAQ search tools to the conversational layer.
"""

import json
from typing import Any, Dict, List

from mcp import types
from mcp.server import Server
from mcp.server.sse import SseServerTransport
from mcp.server.stdio import stdio_server

from faqsearch.mcp.tools import SEARCH_FAQ_TOOL, TOOLS, MCPToolHandler
from faqsearch.retrieval.candidates import SearchMethod
from faqsearch.retrieval.service import SEARCH_ERROR_MESSAGE, FAQSearchService
from faqsearch.utils.exceptions import ConfigurationError, StorageConnectionError
from faqsearch.utils.logging import LoggerMixin

SERVER_VERSION = "1.0.0"
TOOL_NAMES = frozenset(tool.name for tool in TOOLS)


class FAQMCPServer(LoggerMixin):
    """
    MCP server for FAQ search.

    Attributes:
        server: MCP Server instance
        tool_handler: Handler for tool invocations
    """

    def __init__(
        self,
        service: FAQSearchService,
        server_name: str = "faq-search",
        server_version: str = SERVER_VERSION,
    ):
        """
        Initialize the FAQ MCP server.

        Args:
            service: FAQ search service
            server_name: MCP server name
            server_version: MCP server version
        """
        self.server_version = server_version
        self.tool_handler = MCPToolHandler(service)
        self.server = Server(server_name)

        self._register_handlers()

        self.logger.info(
            "initialized_faq_mcp_server",
            server_name=server_name,
            server_version=server_version,
            tool_count=len(TOOLS),
        )

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        """
        Run a tool and wrap its JSON result as text content.

        Unknown tools and unexpected failures are returned in the tool's
        result shape with `success: false`. Misconfiguration and an
        unreachable database are raised; the protocol layer reports them
        as a tool error.
        """
        self.logger.info(
            "mcp_call_tool",
            tool_name=name,
            arguments_keys=list(arguments.keys()),
        )

        if name not in TOOL_NAMES:
            self.logger.warning("mcp_unknown_tool", tool_name=name)
            result = {"success": False, "message": f"Unknown tool: {name}", "results": []}
            return self._as_text(result)

        try:
            result = await self.tool_handler.call(name, arguments)
        except (ConfigurationError, StorageConnectionError):
            raise
        except Exception as e:
            self.logger.error(
                "mcp_tool_call_failed",
                tool_name=name,
                error=str(e),
                exc_info=True,
            )
            result = {"success": False, "message": SEARCH_ERROR_MESSAGE, "results": []}
            if name == SEARCH_FAQ_TOOL.name:
                result["searchMethod"] = SearchMethod.ERROR.value

        return self._as_text(result)

    @staticmethod
    def _as_text(result: Dict[str, Any]) -> List[types.TextContent]:
        return [
            types.TextContent(
                type="text",
                text=json.dumps(result, ensure_ascii=False, indent=2),
            )
        ]

    def _register_handlers(self) -> None:
        """Register MCP protocol handlers."""

        @self.server.list_tools()
        async def list_tools() -> List[types.Tool]:
            self.logger.debug("mcp_list_tools_called")
            return self.tool_handler.get_available_tools()

        @self.server.call_tool()
        async def call_tool(
            name: str,
            arguments: Dict[str, Any]
        ) -> List[types.TextContent]:
            return await self.call_tool(name, arguments or {})

        self.logger.info("mcp_handlers_registered")

    async def run_stdio(self) -> None:
        """
        Run MCP server with stdio transport.

        The server reads requests from stdin and writes responses to stdout,
        so it can run as a subprocess of the chat application.
        """
        self.logger.info("starting_mcp_server_stdio")

        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        except Exception as e:
            self.logger.error(
                "mcp_server_stdio_failed",
                error=str(e),
                exc_info=True,
            )
            raise
        finally:
            self.logger.info("mcp_server_stopped")

    async def run_sse(
        self,
        host: str = "0.0.0.0",
        port: int = 3000,
    ) -> None:
        """
        Run MCP server with SSE (Server-Sent Events) transport.

        Args:
            host: Host to bind to
            port: Port to listen on
        """
        import uvicorn
        from starlette.applications import Starlette
        from starlette.responses import Response
        from starlette.routing import Mount, Route

        self.logger.info(
            "starting_mcp_server_sse",
            host=host,
            port=port,
        )

        sse = SseServerTransport("/messages/")

        async def handle_sse(request):
            async with sse.connect_sse(
                request.scope, request.receive, request._send
            ) as streams:
                await self.server.run(
                    streams[0],
                    streams[1],
                    self.server.create_initialization_options()
                )
            return Response()

        starlette_app = Starlette(
            routes=[
                Route("/sse", endpoint=handle_sse, methods=["GET"]),
                Mount("/messages/", app=sse.handle_post_message),
            ]
        )

        config = uvicorn.Config(
            starlette_app,
            host=host,
            port=port,
            log_level="info"
        )
        await uvicorn.Server(config).serve()

    def get_server_info(self) -> Dict[str, Any]:
        """
        Get server information and status.

        Returns:
            Dictionary with server metadata
        """
        return {
            "name": self.server.name,
            "version": self.server_version,
            "tools": [tool.name for tool in self.tool_handler.get_available_tools()],
            "capabilities": {
                "tools": True,
                "resources": False,
                "prompts": False,
            },
        }


def create_mcp_server(
    service: FAQSearchService,
    server_name: str = "faq-search",
) -> FAQMCPServer:
    """
    Factory function to create the MCP server.

    Args:
        service: FAQ search service
        server_name: MCP server name

    Returns:
        Initialized FAQMCPServer instance
    """
    return FAQMCPServer(service=service, server_name=server_name)


__all__ = [
    "FAQMCPServer",
    "create_mcp_server",
]
