"""
Logging configuration for applications using the Azure infrastructure client

The library itself only creates named loggers below "azure_infra_client";
applications call setup_logging() once to attach handlers.
"""

import logging
import sys
from typing import Mapping, Optional

from .config import debug_enabled
from .constants import LOGGER_NAME

DEBUG_LOG_FILE = "azure-infra-client-debug.log"


def setup_logging(level: Optional[int] = None, environ: Optional[Mapping[str, str]] = None) -> logging.Logger:
    """
    Configure the package logger with console output and an optional debug file

    Args:
        level: Console logger level (defaults to INFO)
        environ: Environment to read AZURE_INFRA_CLIENT_DEBUG from (defaults to os.environ)

    Returns:
        The configured package logger
    """
    formatter = logging.Formatter(fmt="%(asctime)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False

    if not any(
        isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler)
        for handler in logger.handlers
    ):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    logger.setLevel(level if level is not None else logging.INFO)

    # Optionally add file handler for debugging
    if debug_enabled(environ):
        if not any(
            isinstance(handler, logging.FileHandler) and handler.baseFilename.endswith(DEBUG_LOG_FILE)
            for handler in logger.handlers
        ):
            file_handler = logging.FileHandler(DEBUG_LOG_FILE)
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)
            logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)

    return logger
