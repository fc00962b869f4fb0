"""driftwatch logging configuration.

driftwatch logs through `structlog` with keyword context
(`logger.info("Skipping directory", dir=dir)`). Records are routed through the
standard library `logging` module so third-party loggers (httpx, aiosqlite)
share one stream and one level.

Environment:
    DRIFTWATCH_LOG_LEVEL: level name, default ``INFO``.
    DRIFTWATCH_LOG_FORMAT: ``console`` (default) or ``json``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

import structlog

from driftwatch.constants import LOG_FORMAT_ENV, LOG_LEVEL_ENV


def _renderer(fmt: str) -> structlog.typing.Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(level: Optional[str] = None) -> None:
    """Configure driftwatch logging.

    Args:
        level: Optional override for `DRIFTWATCH_LOG_LEVEL`.
    """
    if level:
        os.environ[LOG_LEVEL_ENV] = level

    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level, force=True)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(os.getenv(LOG_FORMAT_ENV, "console").lower()),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
