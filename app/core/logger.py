"""
Loguru setup for Daybook.

A console sink, an optional rotating file sink, and the standard library
loggers of uvicorn, SQLAlchemy and alembic forwarded into loguru so the
server, the engine and the application all share one format.
"""

import inspect
import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from app.core.config import Settings, settings

CONSOLE_FORMAT = ("<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
                  "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>")
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

FORWARDED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine", "alembic")


class InterceptHandler(logging.Handler):
    """Re-emit standard library records through loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Point loguru at the caller, not at the logging module
        frame, depth = inspect.currentframe(), 0
        while frame is not None and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logger(level: str = "INFO", log_file: Optional[str] = None, rotation: str = "10 MB",
                 retention: str = "7 days", diagnose: bool = False, ) -> list[int]:
    """Replace every loguru sink with a console sink and, if *log_file* is set, a rotating file sink.

    Returns the ids of the added sinks.
    """
    logger.remove()
    sink_ids = [logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        sink_ids.append(logger.add(log_path, format=FILE_FORMAT, level=level, rotation=rotation,
                                   retention=retention, compression="zip", backtrace=True, diagnose=diagnose, ))

    logger.debug(f"Logger initialized with level={level}")
    return sink_ids


def forward_std_logging(level: str = "INFO", names: tuple[str, ...] = FORWARDED_LOGGERS,
                        sql_echo: bool = False, ) -> None:
    """Hand the named standard library loggers over to loguru."""
    std_level = logging.getLevelName(level.upper())
    if not isinstance(std_level, int):
        # loguru-only levels (TRACE, SUCCESS)
        std_level = logging.DEBUG
    for name in names:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False
        std_logger.setLevel(std_level)
    # SQL statements are logged at INFO by the engine
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if sql_echo else logging.WARNING)


def configure_from_settings(config: Optional[Settings] = None) -> list[int]:
    """Apply the ``LOG_*`` settings and forward third-party loggers."""
    config = config or settings
    sink_ids = setup_logger(level=config.LOG_LEVEL, log_file=config.LOG_FILE, rotation=config.LOG_ROTATION,
                            retention=config.LOG_RETENTION, diagnose=config.DEBUG, )
    forward_std_logging(config.LOG_LEVEL, sql_echo=config.DEBUG)
    return sink_ids
