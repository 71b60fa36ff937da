"""
Logger setup for entry points.

Modules log through logging.getLogger(__name__) without handlers of their
own. An entry point calls create_logger() for a package logger, which then
shows the messages of every module in that package.
"""
import logging
import sys
from typing import Optional

from .connector_env import ConnectorEnv

PACKAGE_LOGGER = "update_connector"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s (file: %(filename)s, line: %(lineno)d)'


def create_logger(name: str = PACKAGE_LOGGER, level: Optional[int] = None, propagate: bool = False) -> logging.Logger:
    """
    Configure a logger with a stream handler on stderr.

    Args:
        name: Logger name; a package name covers all of its modules.
        level: Log level; defaults to LOGGER_LEVEL from the environment (or .env file).
        propagate: Pass records on to the root logger as well.
    """
    if level is None:
        ConnectorEnv.load_env()
        level = ConnectorEnv.get_log_level()
    logger = logging.getLogger(name)
    logger.setLevel(level)
    handler = next((h for h in logger.handlers if getattr(h, '_connector_handler', False)), None)
    if handler is None:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._connector_handler = True
        logger.addHandler(handler)
    else:
        # Created again, e.g. for a second run in the same process; stderr may have been replaced.
        handler.setStream(sys.stderr)
    logger.propagate = propagate
    return logger
