"""
logging_config.py — Centralized Logging Configuration for the Order Automation

This module configures unified logging behavior for the entire application.
The log doubles as the human-readable trace of every completed workflow step.

Features:
    • Console output plus an optional persistent log file
    • Process ID tagging so runs can be told apart in a shared log file
    • Standardized log format for all modules
    • Reduced verbosity for the HTTP libraries (ovh SDK, urllib3)
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(levelname)s - [PID:%(process)d] - %(message)s'
DEFAULT_LOG_FILE = "server_order.log"


def setup_logging(log_file: Optional[str] = DEFAULT_LOG_FILE, verbose: bool = False):
    """
    Configures the global logging system for the application.

    Args:
        log_file (str | None): Path of the persistent log file. None disables file output.
        verbose (bool): Log at DEBUG instead of INFO (includes request bodies).

    The configuration includes:
        - Log format: timestamp, log level, process ID, and message
        - Output destinations:
            1. Console (stdout): real-time trace of the workflow
            2. File: appended to on every run, if enabled
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    # Reduce verbosity from external libraries
    logging.getLogger("ovh").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name):
    """
    Returns a logger instance for a given module or component name.

    Args:
        name (str): The logger name, typically the module's __name__.

    Returns:
        logging.Logger: A logger that follows the global format and handlers.
    """
    return logging.getLogger(name)
