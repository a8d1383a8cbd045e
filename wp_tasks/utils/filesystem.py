"""
Utilities for filesystem operations
"""

import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import Optional


def ensure_dir_exists(directory: Path) -> None:
    """
    Ensures that a directory exists, creating it if necessary

    Args:
        directory: Directory path
    """
    directory.mkdir(parents=True, exist_ok=True)


def clean_dir(directory: Path) -> int:
    """
    Removes everything inside a directory, keeping the directory itself

    Args:
        directory: Directory to empty

    Returns:
        int: Number of top-level entries removed
    """
    removed = 0
    if not directory.exists():
        return removed

    for entry in directory.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
        removed += 1
    return removed


def build_tmp_dir(prefix: str = "wp-deploy-", timestamp: Optional[int] = None) -> Path:
    """
    Builds a temp folder path for a task run

    The name only has one-second resolution, so runs started in the same
    second share a directory.

    Args:
        prefix: Prefix of the directory name
        timestamp: Unix time to use (defaults to now)

    Returns:
        Path: Path under the system temp directory (not created)
    """
    if timestamp is None:
        timestamp = int(time.time())
    return Path(os.path.realpath(tempfile.gettempdir())) / f"{prefix}{timestamp}"
