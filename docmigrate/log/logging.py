"""
Logging setup for docmigrate.

All modules log through the loguru ``logger`` exported here. Keyword
arguments passed to a log call (``event_type=...``) end up in the record's
``extra`` and are visible in JSON output.
"""

import sys

from loguru import logger

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<level>{message}</level>"
)


def setup_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """
    Replace loguru's default sink with one on stderr.

    Args:
        level: Minimum level to emit.
        json_logs: Emit one serialized JSON object per line instead of text.
    """
    logger.remove()
    if json_logs:
        logger.add(sys.stderr, level=level.upper(), serialize=True)
    else:
        logger.add(sys.stderr, level=level.upper(), format=TEXT_FORMAT)


__all__ = ["logger", "setup_logging"]
