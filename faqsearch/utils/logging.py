"""
Structured logging for the FAQ search service.

Log entries are structlog event dicts rendered as JSON (production) or
colored console lines (development). Two kinds of context are merged into
every entry:
- the request correlation id, set by the HTTP middleware
- the search context, bound by `search_context` around one search so the
  ranker, matcher and retriever events share a search id, the caller
  surface and the scoring policy version
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any
from uuid import uuid4

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

NOISY_LOGGERS = ("httpx", "httpcore", "openai", "chromadb", "sqlalchemy.engine")

# Raw user text is cut to this length in every log entry.
MAX_LOGGED_QUERY_CHARS = 80


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Set the correlation id for the current context.

    An empty or missing id is replaced by a fresh UUID.
    """
    cid = correlation_id or str(uuid4())
    correlation_id_var.set(cid)
    return cid


def clear_correlation_id() -> None:
    correlation_id_var.set(None)


@contextmanager
def search_context(surface: str, **fields: Any) -> Iterator[str]:
    """
    Bind search fields to every log entry emitted inside the block.

    Args:
        surface: Caller surface (`tool`, `direct`, `category`).
        **fields: Extra fields, e.g. `scoring_policy` or `vector_requested`.

    Yields:
        The generated search id.

    Example:
        >>> with search_context("tool", scoring_policy="2024-06") as search_id:
        ...     await ranker.rank("환불")
    """
    search_id = uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(
        search_id=search_id, search_surface=surface, **fields
    ):
        yield search_id


def add_correlation_id(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Structlog processor adding the request correlation id when one is set."""
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def truncate_query(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Structlog processor shortening logged query text."""
    for key in ("query", "tag"):
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > MAX_LOGGED_QUERY_CHARS:
            event_dict[key] = value[:MAX_LOGGED_QUERY_CHARS] + "…"
    return event_dict


class AppContext:
    """Structlog processor tagging entries with the application name."""

    def __init__(self, app_name: str) -> None:
        self.app_name = app_name

    def __call__(
        self, logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("app", self.app_name)
        return event_dict


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    app_name: str = "faq-search",
) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        log_format: 'json' for production, 'console' for development.
        app_name: Value of the `app` field on every entry.
    """
    level = getattr(logging, log_level)
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_correlation_id,
        AppContext(app_name),
        truncate_query,
    ]

    if log_format == "json":
        # Korean text stays readable in the JSON output.
        renderer: Processor = structlog.processors.JSONRenderer(ensure_ascii=False)
        processors = [*shared_processors, structlog.processors.format_exc_info, renderer]
        line_format = "%(message)s"
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
        processors = [*shared_processors, renderer]
        line_format = "%(levelname)s %(name)s %(message)s"

    logging.basicConfig(format=line_format, stream=sys.stdout, level=level)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class LoggerMixin:
    """
    Give a class a `logger` named after it.

    Usage:
        class KeywordMatcher(LoggerMixin):
            async def search(self, query, limit):
                self.logger.info("keyword_search_completed", returned=3)
    """

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger
