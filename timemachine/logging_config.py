"""
Logging configuration for timemachine.

Quiet by default; --verbose or TIMEMACHINE_VERBOSE=1 turns on debug output.
"""

import logging
import sys
import warnings
from logging.handlers import RotatingFileHandler
from pathlib import Path


def configure_quiet_mode(quiet: bool = True):
    """
    Configure logging to suppress verbose output.

    Args:
        quiet: If True, only warnings and errors from timemachine reach stderr.
    """
    if quiet:
        # Suppress Python warnings (including deprecation warnings)
        warnings.filterwarnings("ignore")
        logger = logging.getLogger("timemachine")
        if logger.level == logging.NOTSET:
            logger.setLevel(logging.WARNING)


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
    # Re-enable warnings
    warnings.filterwarnings("default")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        root_logger.addHandler(handler)

    logging.getLogger("timemachine").setLevel(logging.DEBUG)


def configure_ops_log(config_dir):
    """Configure a persistent operations log in the config directory.

    Writes to {config_dir}/timemachine-ops.log using a rotating file handler
    (1MB max, 3 backups). Always active regardless of --verbose.
    Returns the handler so it can be removed on close().
    """
    config_dir = Path(config_dir)
    config_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        str(config_dir / "timemachine-ops.log"),
        maxBytes=1_000_000,
        backupCount=3,
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    tm_logger = logging.getLogger("timemachine")
    tm_logger.addHandler(handler)
    # Ensure the logger allows INFO through even in quiet mode
    if tm_logger.level == logging.NOTSET or tm_logger.level > logging.INFO:
        tm_logger.setLevel(logging.INFO)

    return handler


def remove_ops_log(handler) -> None:
    """Detach and close a handler returned by configure_ops_log()."""
    logging.getLogger("timemachine").removeHandler(handler)
    handler.close()
