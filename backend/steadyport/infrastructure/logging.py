"""
Console logging setup.

One stderr sink, one line per record, ASCII only. Standard-library loggers
(uvicorn, asyncio) are routed through loguru so everything shares the format.
"""

import logging
import sys
from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}"


class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _ascii_only(record) -> None:
    record["message"] = record["message"].encode("ascii", "backslashreplace").decode("ascii")


def configure_logging(level: str = "INFO") -> None:
    """Install the console sink. Safe to call more than once."""
    logger.remove()
    logger.configure(patcher=_ascii_only)
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, colorize=False, backtrace=False)
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
