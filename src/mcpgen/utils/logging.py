"""Structured logging for mcpgen, built on structlog."""

import logging
import sys

import structlog

# Third-party loggers that log every request or query at INFO
_CHATTY_LIBRARIES = ("httpx", "httpcore", "aiosqlite")

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.stdlib.add_logger_name,
]


def _renderer(json_output: bool) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(level: str = "INFO", json_output: bool | None = None) -> None:
    """Configure structlog and route stdlib logging through it.

    Records are written to stderr so the CLI can print JSON results on stdout.
    Download and database libraries are held at WARNING unless ``level`` is
    DEBUG.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: Force JSON (True) or console (False) rendering. By default
            DEBUG renders for the console and every other level as JSON.
    """
    level = level.upper()
    log_level = getattr(logging, level, logging.INFO)
    debug = level == "DEBUG"

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(not debug if json_output is None else json_output),
            ],
            foreign_pre_chain=_SHARED_PROCESSORS,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in _CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.NOTSET if debug else max(log_level, logging.WARNING))


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound to ``name`` (usually ``__name__``)."""
    return structlog.get_logger(name)
