"""Structured logging via structlog.

Configures structlog once per command invocation. Module code keeps using
``logging.getLogger(__name__)``; the stdlib records are routed through
``structlog.stdlib.ProcessorFormatter`` so every line gets the same
renderer.

Renderer selection:
  console: `ConsoleRenderer` for humans reading CI logs (default).
  json: `JSONRenderer` for log shippers.

Levels:
  CI logs distinguish plain progress from completed work. A
  SUCCESS level (25) is registered between INFO and WARNING; use
  `log_success()` to emit it.
"""

from __future__ import annotations

import logging
import logging.config
import sys

import structlog

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")


def log_success(logger: logging.Logger, msg: str, *args) -> None:
    """Emit a SUCCESS-level record on a stdlib logger."""
    logger.log(SUCCESS, msg, *args)


def configure_structlog(debug: bool = False, level: str = "INFO", fmt: str = "console") -> None:
    """Configure structlog and the stdlib bridge.

    Call once from the CLI before any dispatcher logs. Calling multiple
    times is safe; the handler list is rebuilt each time.
    """
    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_level = "DEBUG" if debug else level.upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "structlog",
                    "stream": "ext://sys.stderr",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": root_level,
            },
        }
    )
