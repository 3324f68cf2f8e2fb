# =============================================================================
# Tab Utilities
# =============================================================================
# Shared helpers for tab paths and names so the wizard, the resolver logs
# and the CLI listing all agree on how a tab is shown.

import os

from workspacer.models import LaunchDirective, Tab


def expand_tab_path(path: str) -> str:
    """Expand ~ in a tab path without resolving symlinks.

    Args:
        path: Raw path string (may contain ~).

    Returns:
        Path with ~ expanded.
    """
    return os.path.expanduser(path)


def tab_path_exists(path: str) -> bool:
    return os.path.isdir(expand_tab_path(path))


def get_tab_display_name(tab: Tab | LaunchDirective) -> str:
    """Get the display name for a tab.

    Priority order:
    1. tab.title - Title from workspace config
    2. basename(starting_directory) - Directory name as fallback
    """
    if tab.title:
        return tab.title
    directory = expand_tab_path(tab.starting_directory).rstrip("/\\")
    return os.path.basename(directory) or tab.starting_directory


def shorten_home(path: str) -> str:
    """Convert a path inside the home directory to ~ form."""
    home = os.path.expanduser("~")
    if path == home:
        return "~"
    if path.startswith(home + os.sep):
        return "~" + path[len(home):]
    return path
