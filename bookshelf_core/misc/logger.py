"""
Bookshelf library containing logging helper functionality
"""

import logging
import logging.config
from typing import Iterable, Optional

from ..schemas.config import LoggingConfig


def enforce_logger(logger: Optional[logging.Logger] = None, default: str = "bookshelf_core") -> logging.Logger:
    """
    Enforce availability of a working logger, falling back to the named default logger
    """

    if logger is not None and isinstance(logger, logging.Logger):
        return logger
    elif logger is not None:
        raise TypeError(f"Expected 'logging.Logger', got {type(logger)}")
    log = logging.getLogger(default)
    log.warning("No logger specified for function call; using defaults.")
    return log


def configure_logging(config: LoggingConfig, debug: bool = False) -> LoggingConfig:
    """
    Apply the logging configuration, lowering all levels to DEBUG if requested

    :param config: logging section of the settings
    :param debug: switch to emit DEBUG messages on the root logger and all handlers
    :return: the logging configuration that has been applied
    """

    if debug:
        root = dict(config.root, level="DEBUG")
        handlers = {name: dict(handler, level="DEBUG") for name, handler in config.handlers.items()}
        config = config.model_copy(update={"root": root, "handlers": handlers})
    logging.config.dictConfig(config.model_dump())
    return config


class NoDebugFilter(logging.Filter):
    """
    Logging filter that drops DEBUG messages of the given logger (or loggers, for renamed libraries)
    """

    def __init__(self, name: str = "", names: Optional[Iterable[str]] = None):
        super().__init__(name)
        self._matchers = [logging.Filter(n) for n in [name, *(names or [])] if n]

    def filter(self, record: logging.LogRecord) -> bool:
        if any(f.filter(record) for f in self._matchers):
            return record.levelno > logging.DEBUG
        return True
