# =============================================================================
# Item Sources
# =============================================================================
# An item source maps the current filter text to the ordered labels the
# picker shows. Order is the natural source order, never sorted.

import os
from pathlib import Path
from typing import Callable, Iterable

from loguru import logger

from workspacer.models import Config

ItemSource = Callable[[str], list[str]]


def filter_items(labels: Iterable[str], filter_text: str) -> list[str]:
    """Case-insensitive prefix filter that keeps the source order."""
    prefix = filter_text.lower()
    return [label for label in labels if label.lower().startswith(prefix)]


def list_directories(root: Path) -> list[str]:
    """
    Names of the subdirectories of root, in directory-entry order.

    Entries whose type cannot be determined are skipped and logged.

    Raises:
        OSError: If root itself cannot be listed
    """
    names = []
    with os.scandir(root) as entries:
        for entry in entries:
            try:
                if entry.is_dir():
                    names.append(entry.name)
            except OSError as e:
                logger.warning(
                    "Skipping unreadable directory entry",
                    operation="list_directories",
                    status="skip",
                    root=str(root),
                    entry=entry.name,
                    error=str(e)
                )
    return names


def directory_source(root: Path) -> ItemSource:
    """Item source over the subdirectories of root, re-listed on every call."""
    def items(filter_text: str) -> list[str]:
        return filter_items(list_directories(root), filter_text)

    return items


def workspace_source(config: Config) -> ItemSource:
    """Item source over workspace names in declaration order."""
    names = config.workspace_names()

    def items(filter_text: str) -> list[str]:
        return filter_items(names, filter_text)

    return items
