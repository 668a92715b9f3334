"""Structured logging setup using structlog.

One shared processor chain (context vars, log level, timestamps, stack
info) feeds either a coloured ConsoleRenderer for local development or a
JSONRenderer for production.  The renderer is chosen from the ``APP_ENV``
environment variable (default ``"development"``), or forced via
``json_output``.

Standard-library ``logging`` is routed through the same formatter so
uvicorn, httpx and chromadb output matches the application's own events.
Per-request chatter from the HTTP and vector-store clients is held at
WARNING; the request middleware already logs one ``http_request`` event
per call.
"""

import logging
import os
import sys

import structlog

# Third-party loggers that emit one line per outbound request or index
# operation at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "chromadb")


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog with environment-appropriate rendering.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output. When False, JSON is used only when
                     APP_ENV is "production".

    Returns:
        A configured structlog BoundLogger.
    """
    # "production" => JSON lines for log shipping; anything else => console.
    app_env = os.environ.get("APP_ENV", "development")
    use_json = json_output or app_env == "production"

    # Runs for both renderers.  Context vars go first so bindings made by
    # the request middleware (path, client) reach every event.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,           # "level" key
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,                    # exc_info on logger.exception()
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    # The renderer is the only processor that differs between environments.
    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            renderer,
        ],
        # Drops events below log_level before any processor runs.
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Bridge stdlib logging (uvicorn access logs, httpx, chromadb) through
    # the same chain.
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()   # uvicorn installs its own; avoid duplicates
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger.

    Configures logging with defaults if nothing has done so yet, so library
    use (the CLI, tests) gets formatted output without calling
    :func:`configure_logging` first.

    Args:
        name: Logger name, typically ``__name__``.

    Returns:
        A structlog BoundLogger bound with the given name.
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
