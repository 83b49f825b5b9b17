# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Logging bootstrap for prefstore.

Events are emitted through structlog and routed to the stdlib logger named
LOGGER_NAME, so a host application keeps its own root logging untouched.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

LOGGER_NAME = 'prefstore'

_LOG_CONFIGURED = False


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Route prefstore events to stderr at the given level.

    Only the first call has an effect.

    Args:
        level: Level name, case-insensitive. Unknown names fall back to INFO.
        json_logs: Render one JSON object per event instead of console text.
    """
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    log_level = getattr(logging, str(level or "INFO").upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    prefstore_logger = logging.getLogger(LOGGER_NAME)
    prefstore_logger.addHandler(handler)
    prefstore_logger.setLevel(log_level)
    prefstore_logger.propagate = False

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    # Module loggers are children of LOGGER_NAME and reach its handler.
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _LOG_CONFIGURED = True
