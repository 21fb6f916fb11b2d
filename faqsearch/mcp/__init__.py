"""
MCP (Model Context Protocol) module for the FAQ search service.

This module provides the MCP server implementation and the tools that
expose FAQ retrieval to the conversational layer.
"""

from faqsearch.mcp.server import FAQMCPServer, create_mcp_server
from faqsearch.mcp.tools import (
    FAQ_CATEGORY_TOOL,
    MCPToolHandler,
    SEARCH_FAQ_TOOL,
    TOOLS,
)

__all__ = [
    # Server
    "FAQMCPServer",
    "create_mcp_server",
    # Tool handler and tools
    "MCPToolHandler",
    "TOOLS",
    "SEARCH_FAQ_TOOL",
    "FAQ_CATEGORY_TOOL",
]
