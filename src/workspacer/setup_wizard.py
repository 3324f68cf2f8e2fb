# =============================================================================
# Setup Wizard
# =============================================================================
# First-run setup and the interactive "-new" workspace form. Both read
# lines through a `read_line(prompt) -> str` callable and report through
# `echo(message)`, so a terminal and a scripted test drive them the same way.

from enum import Enum
from pathlib import Path
from typing import Callable

from loguru import logger

from workspacer.config_loader import save_config
from workspacer.errors import Result
from workspacer.models import Config, DirectoryRoot, LeafWorkspace, Tab
from workspacer.tab_utils import expand_tab_path, get_tab_display_name, shorten_home, tab_path_exists

ReadLine = Callable[[str], str]
Echo = Callable[[str], None]

DEFAULT_ROOT_NAME = "default"

YES = ("y", "yes")
NO = ("n", "no")


def run_first_run_setup(config_path: Path, read_line: ReadLine, echo: Echo) -> Result[Config]:
    """
    Ask for the first directory root until an existing directory is given,
    then write the initial config.
    """
    logger.info(
        "First run detected - starting setup",
        operation="run_first_run_setup",
        status="started",
        config_path=str(config_path)
    )
    echo("No config found, running first-time setup.")

    while True:
        raw = read_line("Please enter a path for your first workspace").strip()
        if raw and Path(expand_tab_path(raw)).is_dir():
            break
        echo(f"Supplied path {raw!r} is not a valid directory")

    config = Config(roots=[DirectoryRoot(name=DEFAULT_ROOT_NAME, path=raw)])
    saved = save_config(config, config_path)
    if saved.is_err():
        return Result.err(saved.error)

    echo(f"Config saved to {shorten_home(str(config_path))}")
    return Result.ok(config)


class FormStep(Enum):
    NAME = "name"
    DIRECTORY = "directory"
    TITLE = "title"
    COMMAND = "command"
    SPLIT_PANE = "split_pane"
    ANOTHER_TAB = "another_tab"
    CONFIRM = "confirm"
    DONE = "done"
    CANCELLED = "cancelled"


def _parse_yes_no(line: str, default: bool) -> bool | None:
    answer = line.strip().lower()
    if not answer:
        return default
    if answer in YES:
        return True
    if answer in NO:
        return False
    return None


class NewWorkspaceForm:
    """
    State machine for building a leaf workspace one answer at a time.

    name -> (directory -> title -> command* -> split_pane -> another_tab)+
    -> confirm. The split question is skipped for the first tab since it
    always opens the window.
    """

    def __init__(self, existing_names: list[str], reserved_names: tuple[str, ...] = ()):
        self._existing = {name.lower() for name in existing_names}
        # CLI command words, which dispatch never reads as workspace names
        self._reserved = {name.lower() for name in reserved_names}
        self.step = FormStep.NAME
        self.name = ""
        self.tabs: list[Tab] = []
        self._directory = ""
        self._title: str | None = None
        self._commands: list[str] = []

    @property
    def finished(self) -> bool:
        return self.step in (FormStep.DONE, FormStep.CANCELLED)

    @property
    def prompt(self) -> str:
        tab_number = len(self.tabs) + 1
        if self.step is FormStep.NAME:
            return "Workspace name"
        if self.step is FormStep.DIRECTORY:
            return f"Tab {tab_number} starting directory"
        if self.step is FormStep.TITLE:
            return f"Tab {tab_number} title (blank for none)"
        if self.step is FormStep.COMMAND:
            return f"Tab {tab_number} startup command {len(self._commands) + 1} (blank to finish)"
        if self.step is FormStep.SPLIT_PANE:
            return f"Open tab {tab_number} as a split pane? [y/N]"
        if self.step is FormStep.ANOTHER_TAB:
            return "Add another tab? [y/N]"
        if self.step is FormStep.CONFIRM:
            return f"{self.summary()}\nSave this workspace? [Y/n]"
        return ""

    def summary(self) -> str:
        lines = [f"Workspace '{self.name}' with {len(self.tabs)} tab(s):"]
        for tab in self.tabs:
            mode = "split" if tab.split_pane else "tab"
            line = f"  [{mode}] {get_tab_display_name(tab)} -> {tab.starting_directory}"
            if tab.commands:
                line += f" ({'; '.join(tab.commands)})"
            lines.append(line)
        return "\n".join(lines)

    def _finish_tab(self, split_pane: bool) -> None:
        self.tabs.append(Tab(
            starting_directory=self._directory,
            title=self._title,
            commands=tuple(self._commands) if self._commands else None,
            split_pane=split_pane,
        ))
        self._directory = ""
        self._title = None
        self._commands = []
        self.step = FormStep.ANOTHER_TAB

    def feed(self, line: str) -> str | None:
        """
        Consume one answer for the current step.

        Returns:
            A message to show the user, or None. On invalid input the step
            does not change.
        """
        value = line.strip()

        if self.step is FormStep.NAME:
            if not value:
                return "A workspace name is required"
            if value.lower() in self._existing:
                return f"A workspace named '{value}' already exists"
            if value.lower() in self._reserved:
                return f"'{value}' is reserved as a command name"
            if value.startswith("-"):
                return "Workspace names cannot start with '-'"
            self.name = value
            self.step = FormStep.DIRECTORY
            return None

        if self.step is FormStep.DIRECTORY:
            if not value:
                return "A starting directory is required"
            self._directory = value
            self.step = FormStep.TITLE
            if not tab_path_exists(value):
                logger.warning(
                    "Tab directory does not exist yet",
                    operation="new_workspace_form",
                    directory=value
                )
                return f"Note: {value} does not exist on this machine"
            return None

        if self.step is FormStep.TITLE:
            self._title = value or None
            self.step = FormStep.COMMAND
            return None

        if self.step is FormStep.COMMAND:
            if value:
                self._commands.append(value)
                return None
            if self.tabs:
                self.step = FormStep.SPLIT_PANE
            else:
                self._finish_tab(split_pane=False)
            return None

        if self.step is FormStep.SPLIT_PANE:
            answer = _parse_yes_no(value, default=False)
            if answer is None:
                return "Please answer y or n"
            self._finish_tab(split_pane=answer)
            return None

        if self.step is FormStep.ANOTHER_TAB:
            answer = _parse_yes_no(value, default=False)
            if answer is None:
                return "Please answer y or n"
            self.step = FormStep.DIRECTORY if answer else FormStep.CONFIRM
            return None

        if self.step is FormStep.CONFIRM:
            answer = _parse_yes_no(value, default=True)
            if answer is None:
                return "Please answer y or n"
            self.step = FormStep.DONE if answer else FormStep.CANCELLED
            return None

        return None

    def result(self) -> LeafWorkspace | None:
        if self.step is not FormStep.DONE:
            return None
        return LeafWorkspace(name=self.name, tabs=tuple(self.tabs))


def run_form(form: NewWorkspaceForm, read_line: ReadLine, echo: Echo) -> LeafWorkspace | None:
    while not form.finished:
        message = form.feed(read_line(form.prompt))
        if message:
            echo(message)
    return form.result()


def create_workspace(
    config: Config,
    config_path: Path,
    read_line: ReadLine,
    echo: Echo,
    reserved_names: tuple[str, ...] = (),
) -> Result[LeafWorkspace | None]:
    """
    Run the new-workspace form, append the result and save immediately.

    Returns:
        Result with the new workspace, None if the user declined to save,
        or the save error (the config is left unchanged in that case)
    """
    form = NewWorkspaceForm(config.workspace_names(), reserved_names)
    workspace = run_form(form, read_line, echo)
    if workspace is None:
        logger.info("Workspace creation cancelled", operation="create_workspace", status="cancelled")
        return Result.ok(None)

    config.workspaces.append(workspace)
    saved = save_config(config, config_path)
    if saved.is_err():
        config.workspaces.pop()
        return Result.err(saved.error)

    logger.info(
        "Workspace created",
        operation="create_workspace",
        status="success",
        workspace=workspace.name,
        metrics={"tab_count": len(workspace.tabs)}
    )
    return Result.ok(workspace)
