"""structlog setup for the webhook server.

Console output during development, JSON lines in production. Modules get a
logger through get_logger(__name__); request-scoped context (the app being
deployed) is bound with bind_app() and shows up on every event in between.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog and route stdlib logging through the same stream.

    Args:
        json_output: Render JSON lines instead of the console format.
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # http.server and urllib3 log through stdlib logging
    root = logging.getLogger()
    root.handlers = [logging.StreamHandler(sys.stderr)]
    root.setLevel(level)


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound with the module name."""
    return structlog.get_logger(name)


@contextmanager
def bind_app(app_name: str) -> Iterator[None]:
    """Bind ``app`` into the logging context for the duration of a run."""
    with structlog.contextvars.bound_contextvars(app=app_name):
        yield
