"""
Structured logging setup using structlog.

Module loggers come from ``structlog.get_logger()``; with the stdlib factory
they are named after their module, so everything the package emits lands on
the ``blogmeta`` stdlib logger. Only that logger is configured here; the
host's root logger is left alone.
"""
import logging
import sys
from typing import Optional

import structlog

from blogmeta.core.config import ConfigManager

PACKAGE_LOGGER = "blogmeta"


def _handlers(level: int, log_file: Optional[str]) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter("%(message)s"))
    return handlers


def setup_logging(config: ConfigManager) -> None:
    """Configure structlog from the ``logging`` section.

    Keys:
        logging.level: DEBUG, INFO, WARNING, ERROR or CRITICAL (default INFO).
            Unknown names fall back to INFO.
        logging.json: Render JSON lines instead of console output.
        logging.file: Also write to this file.

    Calling it again replaces the handlers installed by the previous call.
    """
    level = getattr(logging, config.get_str("logging.level", "INFO").upper(), logging.INFO)
    json_output = config.get_bool("logging.json", False)
    log_file = config.get("logging.file")

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    for handler in _handlers(level, log_file):
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=False,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
