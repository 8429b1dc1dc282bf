from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d | %(message)s"

# Driver loggers only speak up at DEBUG
DRIVER_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "pymysql")


def configure_logging(level: str | None = None) -> None:
    """
    Configure root logging for scripts using bulkwriter. The level is taken
    from the argument, then BULKWRITER_LOG_LEVEL, then LOG_LEVEL (default INFO).
    """
    if level is None:
        level = os.getenv("BULKWRITER_LOG_LEVEL") or os.getenv("LOG_LEVEL", "INFO")
    level = level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)

    driver_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(driver_level)
