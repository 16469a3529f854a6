"""structlog rendering for sync runs: console lines in dev, JSON lines in prod."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from agentsync.config import Settings

_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]


def configure_logging(settings: Settings) -> None:
    """Send every stdlib logger through a single structlog formatter on stderr.

    Modules log with ``logging.getLogger(__name__)``; the formatter merges the
    bound sync context (``sync_run``, ``agent_id``) into each record.
    """
    renderers: list[structlog.types.Processor]
    if settings.app_env == "prod":
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))


@contextmanager
def bound_context(**kwargs: object) -> Iterator[None]:
    """Bind context for the duration of a block, restoring the previous values after."""
    tokens = structlog.contextvars.bind_contextvars(**kwargs)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
