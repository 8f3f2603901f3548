"""Subprocess helpers for the external tools (git, pip, python)."""

import logging
import os
import subprocess
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def pip_command(*args: str) -> list[str]:
    """pip invocation bound to the running interpreter's environment."""
    return [sys.executable, "-m", "pip", *args]


def run_command(args: list[str], cwd: Path | None = None) -> subprocess.CompletedProcess:
    """
    Run an external command from a discrete argument list.

    Output is captured and logged; a non-zero exit is returned to the caller,
    not raised.
    """
    logger.debug(f"Running: {args} (cwd={cwd})")
    # Set PYTHONUTF8=1 in subprocess env for proper Unicode handling
    env = {**os.environ, "PYTHONUTF8": "1"}
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            cwd=cwd,
            env=env,
        )
    except FileNotFoundError as e:
        logger.error(f"Command not found: {args[0]}")
        return subprocess.CompletedProcess(args, 127, stdout="", stderr=str(e))

    if result.stdout:
        logger.debug(result.stdout.rstrip())
    if result.returncode != 0:
        logger.error(
            f"Command failed with exit code {result.returncode}: {' '.join(args)}"
        )
        if result.stderr:
            logger.error(result.stderr.rstrip())
    return result
