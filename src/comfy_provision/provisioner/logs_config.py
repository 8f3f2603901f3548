"""
Logs configuration module for comfy-provision.

Provides the log file location with support for:
- Default location: ~/.comfy-provision/logs
- Environment variable override: COMFY_PROVISION_LOGS_DIR

Each run writes to its own timestamped file; RotatingFileHandler adds
``.log.1``, ``.log.2``... suffixes when a file grows too large.
"""

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path

logger = logging.getLogger(__name__)

# Default logs directory
DEFAULT_LOGS_DIR = "~/.comfy-provision/logs"

# Environment variable for overriding logs directory
LOGS_DIR_ENV_VAR = "COMFY_PROVISION_LOGS_DIR"

LOG_FILE_PREFIX = "comfy-provision-logs-"
LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"


def get_logs_dir() -> Path:
    """
    Get the logs directory path.

    Priority order:
    1. COMFY_PROVISION_LOGS_DIR environment variable
    2. Default: ~/.comfy-provision/logs

    Returns:
        Path: Absolute path to the logs directory
    """
    env_dir = os.environ.get(LOGS_DIR_ENV_VAR)
    if env_dir:
        return Path(env_dir).expanduser().resolve()
    return Path(DEFAULT_LOGS_DIR).expanduser().resolve()


def ensure_logs_dir() -> Path:
    """Get the logs directory path and ensure it exists."""
    logs_dir = get_logs_dir()
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def get_current_log_file() -> Path:
    """Path of the log file for a run starting now."""
    timestamp = datetime.now().strftime(LOG_FILE_TIMESTAMP_FORMAT)
    return get_logs_dir() / f"{LOG_FILE_PREFIX}{timestamp}.log"


def cleanup_old_logs(max_age_days: int = 1) -> None:
    """
    Delete log files, including rotated ones, older than ``max_age_days``.

    Age is taken from the file modification time. Files that cannot be
    deleted are logged and skipped.
    """
    logs_dir = get_logs_dir()
    if not logs_dir.is_dir():
        return

    cutoff = (datetime.now() - timedelta(days=max_age_days)).timestamp()
    deleted = 0
    for log_file in logs_dir.glob("*.log*"):
        try:
            if not log_file.is_file() or log_file.stat().st_mtime >= cutoff:
                continue
            log_file.unlink()
            deleted += 1
        except OSError as e:
            logger.warning(f"Failed to delete old log file {log_file}: {e}")

    if deleted:
        logger.info(
            f"Cleaned up {deleted} old log file(s) older than {max_age_days} day(s)"
        )
