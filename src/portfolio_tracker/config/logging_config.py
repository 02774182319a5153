"""
Logging configuration.

Price refreshes run on the ``price-refresh`` worker thread while request
handlers log from the server's threads, so every line carries the thread
name to keep a refresh's lines apart from the request that triggered it.
"""

import logging
import sys
from typing import Optional

from portfolio_tracker.config.settings import get_settings

PACKAGE_LOGGER = "portfolio_tracker"
LOG_FORMAT = "%(asctime)s - %(name)s - [%(threadName)s] - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure application logging.

    ``level`` overrides ``settings.log_level``. The level is applied to the
    package logger as well as the root handler, so it still takes effect
    when a host process configured the root logger first.
    """
    level_name = (level or get_settings().log_level).upper()

    logging.basicConfig(
        level=level_name,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(level_name)

    # SQL echo and per-request access lines drown out refresh progress
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
