"""
LabTerm Logging Configuration

Sets up logging for all components.
"""

import logging
import sys
from typing import Optional

from .config import get_settings


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Set up logging configuration for LabTerm.

    Args:
        level: Optional override for log level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Root logger for LabTerm
    """
    settings = get_settings()
    log_level = level or settings.logging.level
    log_format = settings.logging.format

    # Configure root logger
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=log_format,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    logger = logging.getLogger("labterm")
    logger.setLevel(getattr(logging, log_level.upper()))

    # uvicorn's access log is noisy with one request per keystroke
    if log_level.upper() != "DEBUG":
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific component.

    Args:
        name: Component name (e.g., 'terminal.session', 'server.app')

    Returns:
        Logger instance
    """
    return logging.getLogger(f"labterm.{name}")
