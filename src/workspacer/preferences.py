# =============================================================================
# Persisted Derived State
# =============================================================================
# The last picked directory is written to a plain file next to the config
# so a shell helper can `cd` into it after the picker exits.

import errno
import os
import tempfile
from pathlib import Path

from loguru import logger

LAST_PICK_FILENAME = "file.txt"


def atomic_write_file(path: Path, content: str) -> None:
    """
    Write file atomically using temp file → fsync → rename pattern.

    This ensures the file is never partially written, even if the system
    crashes or disk fills up during the write.

    Args:
        path: Target file path
        content: Content to write

    Raises:
        OSError: If write fails (including disk full - errno.ENOSPC)
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Write to temp file in same directory (for atomic rename)
    temp_fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp"
    )

    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        os.replace(temp_path, path)

        logger.debug(
            "Atomic file write successful",
            operation="atomic_write_file",
            path=str(path)
        )

    except OSError as e:
        try:
            os.unlink(temp_path)
        except OSError:
            pass

        if e.errno == errno.ENOSPC:
            raise OSError(f"Disk full - cannot write to {path}") from e
        raise


def last_pick_path(config_path: Path) -> Path:
    return config_path.parent / LAST_PICK_FILENAME


def write_last_pick(config_path: Path, directory: str) -> Path:
    """
    Persist the picked directory for the shell integration.

    Raises:
        OSError: If the file cannot be written
    """
    path = last_pick_path(config_path)
    atomic_write_file(path, directory)
    logger.info(
        "Last pick saved",
        operation="write_last_pick",
        status="success",
        file=str(path),
        directory=directory
    )
    return path


def clear_last_pick(config_path: Path) -> None:
    """Blank the last-pick file so a stale directory is never reused."""
    path = last_pick_path(config_path)
    try:
        atomic_write_file(path, "")
    except OSError as e:
        logger.warning(
            "Could not clear last pick file",
            operation="clear_last_pick",
            status="failed",
            file=str(path),
            error=str(e)
        )
