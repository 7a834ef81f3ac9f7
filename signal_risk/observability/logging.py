"""
Logging setup shared by the CLI and the API server.

Services log through structlog and bind ``scan_id``, ``asset_id`` or
``request_id`` with ``structlog.contextvars.bound_contextvars``; library
modules log through the standard library. Both end up on stdout with the
same renderer: JSON lines in production, a colored console otherwise.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from signal_risk.config.settings import get_settings

# Client libraries that log every request at INFO
_QUIET = ("httpx", "httpcore", "openai", "asyncio", "urllib3")


def _processors(json_output: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def setup_logging(log_level: str | None = None, json_output: bool | None = None) -> None:
    """
    Configure structlog and the root stdlib logger.

    ``log_level`` overrides ``LOG_LEVEL`` (the CLI passes "DEBUG" for
    ``--debug``); ``json_output`` defaults to production mode.
    """
    settings = get_settings()
    level = getattr(logging, (log_level or settings.log_level).upper())
    if json_output is None:
        json_output = settings.is_production

    structlog.configure(
        processors=_processors(json_output),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)

    for name in _QUIET:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
