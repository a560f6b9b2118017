"""Structured event logging for CulturePrism.

Everything the service logs is a named structlog event with keyword
fields, never a formatted sentence.  The events that matter most:

- ``request_stage`` / ``request_finished`` / ``request_failed`` from
  :class:`~src.pipeline.stage_tracker.StageTracker`: one line per pipeline
  stage with ``pipeline``, ``request_id``, ``stage``, ``elapsed_ms`` and,
  at the end, the ``outcome``.
- ``upstream_attempt`` / ``upstream_backoff`` from the retry executor, with
  ``provider``, ``operation``, ``attempt`` and the upstream ``status``.
- ``cache_hit`` / ``cache_miss`` / ``cache_stored`` with the ``request_hash``.
- ``http_request`` from the request-logging middleware, carrying the
  ``http_request_id`` bound for the lifetime of the request.

Local runs render coloured console lines; ``APP_ENV=production`` (or
``json_output=True``) switches to one JSON object per line.  Records from
uvicorn, aiosqlite and the openai SDK go through the same renderer.
"""

import logging
import os
import sys

import structlog

# Chatty third-party loggers held at WARNING; our own events already cover
# each upstream call.
_QUIET_LOGGERS = ("httpx", "httpcore", "openai")


def _processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _route_stdlib(
    processors: list[structlog.types.Processor],
    renderer: structlog.types.Processor,
    level: str,
) -> None:
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *processors,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Set up structlog and the stdlib bridge once at startup.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR.
        json_output: Force JSON lines even outside production.
    """
    level = log_level.upper()
    processors = _processors()
    if json_output or os.environ.get("APP_ENV", "development") == "production":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _route_stdlib(processors, renderer, level)
    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger bound with ``logger_name=name``, configuring defaults if needed."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)


def bind_request_context(**fields: object) -> None:
    """Attach fields (e.g. ``http_request_id``) to every event until cleared."""
    structlog.contextvars.bind_contextvars(**fields)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
