"""
Errors and error logging for timemachine.

Logs full stack traces for debugging while showing clean messages to users.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

ERROR_LOG_FILENAME = "timemachine-errors.log"


class InvalidConfiguration(ValueError):
    """Raised when a selector or horizon set cannot be built from its settings.

    Examples: a non-positive capacity, no enabled horizons, an unknown
    horizon key. Fatal to the build step only.
    """


def log_exception(exc: Exception, context: str = "", config_dir: Optional[Path] = None) -> Path:
    """
    Append an exception with its full traceback to the error log.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)
        config_dir: Directory holding the log; the CLI passes the one chosen
            with --config. Defaults to the configured directory.

    Returns:
        Path to the error log file
    """
    if config_dir is None:
        from .config import get_config_dir
        config_dir = get_config_dir()
    log_path = Path(config_dir) / ERROR_LOG_FILENAME
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
    header = f"[{stamp}] {context}".rstrip()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'=' * 60}\n{header}\n")
            f.write("".join(traceback.format_exception(exc)))
    except OSError:
        pass  # Can't write error log, don't crash over it
    return log_path
