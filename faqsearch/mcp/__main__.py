"""
MCP server entry point.

Run the FAQ search tools as a standalone MCP server via
`python -m faqsearch.mcp`.
"""

import asyncio
import sys

from faqsearch.config.settings import get_settings
from faqsearch.core.database import FAQRepository, create_engine_from_settings
from faqsearch.core.embeddings import get_query_embedder
from faqsearch.core.vectorstore import get_chunk_store
from faqsearch.mcp.server import create_mcp_server
from faqsearch.retrieval.service import create_search_service
from faqsearch.utils.exceptions import ConfigurationError
from faqsearch.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


async def main() -> None:
    """
    Main entry point for the MCP server.

    Builds the retrieval components from settings and starts the server
    with the configured transport (stdio or SSE).
    """
    settings = get_settings()
    setup_logging(
        log_level=settings.logging.log_level,
        log_format=settings.logging.log_format,
        app_name=settings.mcp.server_name,
    )

    logger.info(
        "mcp_server_starting",
        server_name=settings.mcp.server_name,
        transport=settings.mcp.transport,
        embedding_provider=settings.embedding.embedding_provider,
    )

    repository = FAQRepository(create_engine_from_settings(settings.database))
    service = create_search_service(
        settings,
        repository=repository,
        chunk_store=get_chunk_store(settings.chroma),
        embedder=get_query_embedder(settings.embedding),
    )
    mcp_server = create_mcp_server(service, server_name=settings.mcp.server_name)

    try:
        if settings.mcp.transport == "sse":
            await mcp_server.run_sse(
                host="0.0.0.0",
                port=settings.mcp.server_port,
            )
        else:
            await mcp_server.run_stdio()
    finally:
        repository.close()


def run() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except ConfigurationError as e:
        print(f"Error starting MCP server: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    run()
