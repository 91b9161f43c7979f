"""structlog setup shared by the API process and the background generation job.

Every entry carries the merged contextvars (``request_id`` on the request
path), the level and an ISO timestamp. Development gets the console
renderer; every other environment writes one JSON object per line with
tracebacks rendered as structured data.
"""

from __future__ import annotations

import logging

import structlog
from structlog.typing import Processor

from roomai.config import settings


def _level(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def configure_logging(environment: str | None = None, level: str | None = None) -> None:
    environment = environment or settings.environment
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if environment == "development":
        processors = [*shared, structlog.dev.ConsoleRenderer()]
    else:
        processors = [
            *shared,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level(level or settings.log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
