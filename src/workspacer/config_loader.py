# =============================================================================
# Configuration Loading
# =============================================================================

import json
import os
import re
import time
import tomllib
from pathlib import Path

import platformdirs
from loguru import logger

from workspacer.errors import Error, ErrorType, Result
from workspacer.models import (
    DEFAULT_EXECUTABLE,
    Config,
    DirectoryRoot,
    GroupWorkspace,
    LeafWorkspace,
    Tab,
)
from workspacer.preferences import atomic_write_file

APP_NAME = "Workspacer"
CONFIG_FILENAME = "config.toml"
CONFIG_PATH_ENV = "WORKSPACER_CONFIG"


def get_config_path() -> Path:
    """Config file location, overridable with $WORKSPACER_CONFIG."""
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return Path(platformdirs.user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


class ConfigShapeError(ValueError):
    """A structurally invalid entry in an otherwise well-formed TOML document."""

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.context = context


def extract_toml_error_context(error: tomllib.TOMLDecodeError, file_path: Path) -> dict:
    """
    Extract line context from TOML parse error.

    Args:
        error: The TOMLDecodeError exception
        file_path: Path to the TOML file

    Returns:
        Dict with line_number, line_content, and formatted_message
    """
    error_str = str(error)
    line_number = None
    line_content = None

    # tomllib reports "(at line 15, column 3)"
    line_match = re.search(r'line\s+(\d+)', error_str, re.IGNORECASE)
    if line_match:
        line_number = int(line_match.group(1))

    if line_number and file_path.exists():
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                lines = f.readlines()
                if 0 < line_number <= len(lines):
                    line_content = lines[line_number - 1].rstrip()
        except OSError:
            pass

    if line_number:
        formatted = f"Error on line {line_number}"
        if line_content:
            display_line = line_content[:50] + "..." if len(line_content) > 50 else line_content
            formatted += f": {display_line}"
        formatted += f"\n\nDetails: {error_str}"
    else:
        formatted = f"TOML parse error: {error_str}"

    return {
        "line_number": line_number,
        "line_content": line_content,
        "formatted_message": formatted,
        "raw_error": error_str
    }


def _require_str(value, what: str, **context) -> str:
    if not isinstance(value, str):
        raise ConfigShapeError(f"{what} must be a string", **context)
    return value


def _parse_tab(raw: dict, workspace_index: int, tab_index: int) -> Tab:
    context = {"workspace_index": workspace_index, "tab_index": tab_index}
    if not isinstance(raw, dict):
        raise ConfigShapeError("Tab entries must be tables", **context)
    if "starting_directory" not in raw:
        raise ConfigShapeError("Tab is missing starting_directory", **context)

    starting_directory = _require_str(raw["starting_directory"], "starting_directory", **context)
    title = raw.get("title")
    if title is not None:
        title = _require_str(title, "title", **context)

    commands = raw.get("commands")
    if commands is not None:
        if not isinstance(commands, list) or not all(isinstance(c, str) for c in commands):
            raise ConfigShapeError("commands must be a list of strings", **context)
        commands = tuple(commands)

    split_pane = raw.get("split_pane", False)
    if not isinstance(split_pane, bool):
        raise ConfigShapeError("split_pane must be true or false", **context)

    return Tab(
        starting_directory=starting_directory,
        title=title,
        commands=commands,
        split_pane=split_pane,
    )


def _parse_workspace(raw: dict, index: int) -> LeafWorkspace | GroupWorkspace:
    if not isinstance(raw, dict):
        raise ConfigShapeError("Workspace entries must be tables", workspace_index=index)
    name = _require_str(raw.get("name"), "Workspace name", workspace_index=index)

    has_tabs = "tab" in raw
    has_group = "group" in raw
    if has_tabs == has_group:
        raise ConfigShapeError(
            "Workspace must define exactly one of 'tab' or 'group'",
            workspace_index=index,
            workspace=name
        )

    if has_group:
        members = raw["group"]
        if not isinstance(members, list) or not all(isinstance(m, str) for m in members):
            raise ConfigShapeError(
                "group must be a list of workspace names",
                workspace_index=index,
                workspace=name
            )
        return GroupWorkspace(name=name, members=tuple(members))

    tabs = raw["tab"]
    if not isinstance(tabs, list):
        raise ConfigShapeError("tab must be an array of tables", workspace_index=index, workspace=name)
    return LeafWorkspace(
        name=name,
        tabs=tuple(_parse_tab(tab, index, tab_index) for tab_index, tab in enumerate(tabs)),
    )


def _parse_root(raw: dict, index: int) -> DirectoryRoot:
    if not isinstance(raw, dict):
        raise ConfigShapeError("workspaces entries must be tables", root_index=index)
    path = _require_str(raw.get("path"), "path", root_index=index)
    name = raw.get("name", "")
    name = _require_str(name, "name", root_index=index)
    return DirectoryRoot(name=name, path=path)


def parse_config(data: dict) -> Config:
    """
    Build a Config from a decoded TOML document.

    Raises:
        ConfigShapeError: If an entry has the wrong structure
    """
    roots = data.get("workspaces", [])
    workspaces = data.get("workspace", [])
    if not isinstance(roots, list):
        raise ConfigShapeError("'workspaces' must be an array of tables")
    if not isinstance(workspaces, list):
        raise ConfigShapeError("'workspace' must be an array of tables")

    launcher = data.get("launcher", {})
    if not isinstance(launcher, dict):
        raise ConfigShapeError("'launcher' must be a table")
    executable = _require_str(launcher.get("executable", DEFAULT_EXECUTABLE), "launcher.executable")

    return Config(
        roots=[_parse_root(raw, index) for index, raw in enumerate(roots)],
        workspaces=[_parse_workspace(raw, index) for index, raw in enumerate(workspaces)],
        executable=executable,
    )


def find_duplicate_names(config: Config) -> list[str]:
    """Workspace names declared more than once (case-insensitive)."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for name in config.workspace_names():
        key = name.lower()
        if key in seen and name not in duplicates:
            duplicates.append(name)
        seen.add(key)
    return duplicates


def validate_config(config: Config) -> Result[Config]:
    duplicates = find_duplicate_names(config)
    if duplicates:
        logger.error(
            "Duplicate workspace names in configuration",
            operation="validate_config",
            status="failed",
            duplicates=duplicates
        )
        return Result.err(Error(
            error_type=ErrorType.VALIDATION_ERROR,
            message=f"Duplicate workspace name(s): {', '.join(duplicates)}",
            context={"duplicates": duplicates}
        ))
    return Result.ok(config)


def load_config(config_path: Path) -> Result[Config]:
    """
    Load and validate configuration from the TOML file.

    Args:
        config_path: Path to config.toml

    Returns:
        Result[Config]: Ok with parsed config, or Err with error details
    """
    start_time = time.perf_counter()
    logger.debug(
        "Loading config from path",
        operation="load_config",
        status="started",
        config_path=str(config_path)
    )

    if not config_path.exists():
        logger.info(
            "Config file not found",
            operation="load_config",
            status="missing",
            config_path=str(config_path)
        )
        return Result.err(Error(
            error_type=ErrorType.CONFIG_MISSING,
            message=f"Config file not found: {config_path}",
            context={"config_path": str(config_path)}
        ))

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        error_context = extract_toml_error_context(e, config_path)
        logger.error(
            "Invalid TOML syntax in configuration file",
            operation="load_config",
            status="failed",
            file=str(config_path),
            line_number=error_context["line_number"],
            line_content=error_context["line_content"],
            error=error_context["formatted_message"]
        )
        return Result.err(Error(
            error_type=ErrorType.CONFIG_PARSE_ERROR,
            message=error_context["formatted_message"],
            context={"config_path": str(config_path), "line_number": error_context["line_number"]},
            original_exception=e
        ))
    except OSError as e:
        logger.error(
            "Could not read configuration file",
            operation="load_config",
            status="failed",
            file=str(config_path),
            error=str(e)
        )
        return Result.err(Error(
            error_type=ErrorType.IO_ERROR,
            message=f"Could not read {config_path}: {e}",
            context={"config_path": str(config_path)},
            original_exception=e
        ))

    try:
        config = parse_config(data)
    except ConfigShapeError as e:
        logger.error(
            "Invalid configuration structure",
            operation="load_config",
            status="failed",
            file=str(config_path),
            error=str(e),
            **e.context
        )
        return Result.err(Error(
            error_type=ErrorType.CONFIG_PARSE_ERROR,
            message=str(e),
            context={"config_path": str(config_path), **e.context},
            original_exception=e
        ))

    validated = validate_config(config)
    if validated.is_err():
        validated.error.context["config_path"] = str(config_path)
        return validated

    duration_ms = int((time.perf_counter() - start_time) * 1000)
    logger.debug(
        "Config loaded successfully",
        operation="load_config",
        status="success",
        config_path=str(config_path),
        metrics={
            "roots_count": len(config.roots),
            "workspaces_count": len(config.workspaces),
            "duration_ms": duration_ms
        }
    )
    return Result.ok(config)


def toml_string(value: str) -> str:
    """Quote a value as a TOML basic string."""
    # JSON string escapes are a subset of TOML's, except that DEL must be escaped
    return json.dumps(value, ensure_ascii=False).replace("\x7f", "\\u007f")


def render_config(config: Config) -> str:
    """Render the config as human-editable TOML."""
    lines = [
        "# Workspacer configuration",
        "# [[workspaces]] are directory roots for `workspacer list`",
        "# [[workspace]] entries are launchable workspaces (tabs) or groups",
        "",
    ]

    if config.executable != DEFAULT_EXECUTABLE:
        lines.extend([
            "[launcher]",
            f"executable = {toml_string(config.executable)}",
            "",
        ])

    for root in config.roots:
        lines.extend([
            "[[workspaces]]",
            f"name = {toml_string(root.name)}",
            f"path = {toml_string(root.path)}",
            "",
        ])

    for workspace in config.workspaces:
        lines.append("[[workspace]]")
        lines.append(f"name = {toml_string(workspace.name)}")
        if isinstance(workspace, GroupWorkspace):
            members = ", ".join(toml_string(m) for m in workspace.members)
            lines.append(f"group = [{members}]")
            lines.append("")
            continue
        if not workspace.tabs:
            lines.append("tab = []")
        lines.append("")
        for tab in workspace.tabs:
            lines.append("[[workspace.tab]]")
            if tab.title is not None:
                lines.append(f"title = {toml_string(tab.title)}")
            lines.append(f"starting_directory = {toml_string(tab.starting_directory)}")
            if tab.commands is not None:
                commands = ", ".join(toml_string(c) for c in tab.commands)
                lines.append(f"commands = [{commands}]")
            if tab.split_pane:
                lines.append("split_pane = true")
            lines.append("")

    return "\n".join(lines)


def save_config(config: Config, config_path: Path) -> Result[Path]:
    """
    Save the config to TOML atomically.

    Returns:
        Result[Path]: Ok with the written path, or Err with IO_ERROR
    """
    try:
        atomic_write_file(config_path, render_config(config))
    except OSError as e:
        logger.error(
            "Failed to save configuration",
            operation="save_config",
            status="failed",
            file=str(config_path),
            error=str(e)
        )
        return Result.err(Error(
            error_type=ErrorType.IO_ERROR,
            message=f"Could not write {config_path}: {e}",
            context={"config_path": str(config_path)},
            original_exception=e
        ))

    logger.info(
        "Configuration saved",
        operation="save_config",
        status="success",
        file=str(config_path),
        metrics={"roots_count": len(config.roots), "workspaces_count": len(config.workspaces)}
    )
    return Result.ok(config_path)
