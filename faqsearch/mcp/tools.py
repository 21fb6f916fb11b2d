"""
MCP tool definitions and handlers for the FAQ search service.

This module defines the Model Context Protocol (MCP) tools that expose FAQ
retrieval to the conversational layer. The tool results are passed to the
language model as context; internal entries are included and flagged with
`isInternal` so the caller can label them separately.
"""

from typing import Any, Dict, List

from mcp.types import Tool

from faqsearch.retrieval.service import FAQSearchService
from faqsearch.utils.exceptions import ValidationError
from faqsearch.utils.logging import LoggerMixin


# MCP Tool Schemas
SEARCH_FAQ_TOOL = Tool(
    name="search_faq",
    description=(
        "Search customer-support FAQ entries with hybrid search "
        "(vector similarity first, keyword matching as a supplement). "
        "Use the results to answer the user's question."
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "Question or keywords to search for"
            },
            "useVectorSearch": {
                "type": "boolean",
                "description": "Use vector search (default: true)",
                "default": True
            },
        },
        "required": ["query"]
    }
)


FAQ_CATEGORY_TOOL = Tool(
    name="faq_by_category",
    description=(
        "List public FAQ entries in one category tag, newest first. "
        "Use this when the user asks about a whole topic such as refunds."
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "tag": {
                "type": "string",
                "description": "Exact category tag"
            },
        },
        "required": ["tag"]
    }
)


# Tool list for registration
TOOLS = [
    SEARCH_FAQ_TOOL,
    FAQ_CATEGORY_TOOL,
]


class MCPToolHandler(LoggerMixin):
    """
    Handler for MCP tool invocations.

    Attributes:
        service: FAQ search service the tools delegate to
    """

    def __init__(self, service: FAQSearchService):
        self.service = service

        self.logger.info(
            "initialized_mcp_tool_handler",
            available_tools=len(TOOLS),
        )

    async def handle_search_faq(
        self,
        query: Any,
        use_vector_search: bool = True,
    ) -> Dict[str, Any]:
        """
        Handle the search_faq tool.

        Returns the tool-call shape `{success, message, results,
        searchMethod}`; failures other than storage misconfiguration are
        reported in that shape instead of being raised.
        """
        self.logger.info(
            "handling_search_faq",
            use_vector_search=use_vector_search,
        )

        result = await self.service.search_for_tool(
            query,
            use_vector_search=use_vector_search,
        )

        self.logger.info(
            "search_faq_completed",
            search_method=result["searchMethod"],
            result_count=len(result["results"]),
        )

        return result

    async def handle_faq_by_category(self, tag: Any) -> Dict[str, Any]:
        """Handle the faq_by_category tool."""
        self.logger.info("handling_faq_by_category", tag=tag)

        try:
            return await self.service.browse_category(tag)
        except ValidationError as e:
            return {"success": False, "message": e.message, "results": []}

    async def call(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """
        Route a tool call by name.

        Raises:
            ValueError: If the tool name is unknown.
        """
        if name == SEARCH_FAQ_TOOL.name:
            return await self.handle_search_faq(
                query=arguments.get("query"),
                use_vector_search=arguments.get("useVectorSearch", True),
            )
        if name == FAQ_CATEGORY_TOOL.name:
            return await self.handle_faq_by_category(tag=arguments.get("tag"))
        raise ValueError(f"Unknown tool: {name}")

    def get_available_tools(self) -> List[Tool]:
        """
        Get list of available MCP tools.

        Returns:
            List of Tool objects
        """
        return TOOLS


__all__ = [
    "MCPToolHandler",
    "TOOLS",
    "SEARCH_FAQ_TOOL",
    "FAQ_CATEGORY_TOOL",
]
