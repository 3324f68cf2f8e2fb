# =============================================================================
# Entry Point
# =============================================================================
# CLI dispatch is the only layer that prints user-facing messages and picks
# the exit status; everything below it returns Result values.

import os
import sys
from pathlib import Path
from uuid import uuid4

import click
from loguru import logger

from workspacer import picker
from workspacer.config_loader import get_config_path, load_config
from workspacer.errors import Error, ErrorReport, ErrorType, Result
from workspacer.items import directory_source, workspace_source
from workspacer.logging_config import setup_logger, trace_id_var
from workspacer.models import Config
from workspacer.panes import SubprocessExecutor, launch_workspace
from workspacer.preferences import clear_last_pick, write_last_pick
from workspacer.resolver import resolve
from workspacer.setup_wizard import create_workspace, run_first_run_setup
from workspacer.tab_utils import expand_tab_path
from workspacer.terminal import RichTerminal

NEW_FLAG = "-new"
LIST_FLAG = "-list"
PICK_FLAG = "-pick"

# First CLI arguments that are never treated as workspace names
BROWSE_COMMANDS = ("list", "lf", "l")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


def _prompt(text: str) -> str:
    return click.prompt(text, default="", show_default=False)


def _print_error(error: Error) -> None:
    click.secho(f"Error: {error.message}", fg="red", err=True)


class Dispatcher:
    """Runs one CLI invocation against the loaded config."""

    def __init__(
        self,
        config_path: Path,
        terminal_factory=RichTerminal,
        executor_factory=SubprocessExecutor,
        read_line=_prompt,
    ):
        self.config_path = config_path
        self.terminal_factory = terminal_factory
        self.executor_factory = executor_factory
        self.read_line = read_line
        self.report = ErrorReport()

    def _fail(self, result: Result) -> int:
        self.report.collect_result(result)
        _print_error(result.error)
        return EXIT_ERROR

    def browse(self, config: Config, root_name: str | None) -> int:
        root = config.find_root(root_name)
        if root is None:
            wanted = f"named '{root_name}'" if root_name else "configured"
            return self._fail(Result.err(Error(
                error_type=ErrorType.NOT_FOUND,
                message=f"No directory root {wanted}",
                context={"root": root_name}
            )))

        source = directory_source(Path(expand_tab_path(root.path)))
        picked = picker.run(source, self.terminal_factory())
        if picked.is_err():
            return self._fail(picked)
        if picked.value is None:
            click.echo("No selection")
            return EXIT_OK

        return self._save_pick(os.path.join(root.path, picked.value))

    def _save_pick(self, directory: str) -> int:
        try:
            write_last_pick(self.config_path, directory)
        except OSError as e:
            return self._fail(Result.err(Error(
                error_type=ErrorType.IO_ERROR,
                message=f"Could not save selection: {e}",
                context={"directory": directory},
                original_exception=e
            )))
        click.echo(f"Selected: {directory}")
        return EXIT_OK

    def launch(self, config: Config, name: str) -> int:
        resolved = resolve(config, name)
        if resolved.is_err():
            return self._fail(resolved)
        if not resolved.value:
            return self._fail(Result.err(Error(
                error_type=ErrorType.VALIDATION_ERROR,
                message=f"Workspace '{name}' has no tabs to launch",
                context={"workspace": name}
            )))

        launched = launch_workspace(resolved.value, self.executor_factory(config.executable))
        if launched.is_err():
            return self._fail(launched)
        click.echo(f"Launched {name} ({len(resolved.value)} tab(s))")
        return EXIT_OK

    def pick_and_launch(self, config: Config) -> int:
        picked = picker.run(workspace_source(config), self.terminal_factory())
        if picked.is_err():
            return self._fail(picked)
        if picked.value is None:
            click.echo("No selection")
            return EXIT_OK
        return self.launch(config, picked.value)

    def open_token(self, config: Config, token: str) -> int:
        # Simple mode: no launchable workspaces, so the token names a directory
        if not config.workspaces and config.roots:
            return self._save_pick(os.path.join(config.roots[0].path, token))
        return self.launch(config, token)

    def new_workspace(self, config: Config) -> int:
        created = create_workspace(
            config, self.config_path, self.read_line, click.echo, reserved_names=BROWSE_COMMANDS
        )
        if created.is_err():
            return self._fail(created)
        if created.value is None:
            click.echo("Workspace not saved")
            return EXIT_OK
        click.echo(f"Saved workspace '{created.value.name}' to {self.config_path}")
        return EXIT_OK

    def dispatch(self, args: list[str]) -> int:
        command = args[0].lower() if args else None

        loaded = load_config(self.config_path)
        if loaded.is_ok():
            config = loaded.value
            clear_last_pick(self.config_path)
        elif loaded.error.error_type is not ErrorType.CONFIG_MISSING:
            return self._fail(loaded)
        elif command is None:
            setup = run_first_run_setup(self.config_path, self.read_line, click.echo)
            return self._fail(setup) if setup.is_err() else EXIT_OK
        elif command == NEW_FLAG:
            config = Config()
        else:
            _print_error(loaded.error)
            click.echo("Run workspacer without arguments to create a config.")
            return EXIT_ERROR

        if command is None:
            return EXIT_OK
        if command in BROWSE_COMMANDS:
            return self.browse(config, args[1] if len(args) > 1 else None)
        if command == NEW_FLAG:
            return self.new_workspace(config)
        if command == LIST_FLAG:
            for name in config.workspace_names():
                click.echo(name)
            return EXIT_OK
        if command == PICK_FLAG:
            return self.pick_and_launch(config)
        if command.startswith("-"):
            click.secho(f"Unknown option: {args[0]}", fg="yellow", err=True)
            click.echo(f"Usage: workspacer [list|lf|l [ROOT] | {NEW_FLAG} | {LIST_FLAG} | {PICK_FLAG} | WORKSPACE]")
            return EXIT_USAGE
        return self.open_token(config, args[0])


def run_cli(args: list[str], config_path: Path | None = None, **collaborators) -> int:
    """Dispatch one invocation and return the process exit status."""
    trace_id = str(uuid4())
    trace_id_var.set(trace_id)
    dispatcher = Dispatcher(config_path or get_config_path(), **collaborators)

    logger.info(
        "Workspacer starting",
        operation="main",
        status="started",
        trace_id=trace_id,
        args=args
    )
    try:
        exit_status = dispatcher.dispatch(args)
    except (click.Abort, EOFError):
        click.echo("\nAborted")
        exit_status = EXIT_ERROR

    dispatcher.report.log_summary(trace_id)
    return exit_status


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.version_option(package_name="workspacer")
def main(args):
    """Browse directories or launch a named workspace.

    \b
    workspacer                  first-run setup (when no config exists)
    workspacer list [ROOT]      pick a directory under a configured root
    workspacer -new             create a workspace interactively
    workspacer -list            print workspace names
    workspacer -pick            pick a workspace and launch it
    workspacer NAME             launch the named workspace
    """
    setup_logger()
    sys.exit(run_cli(list(args)))


if __name__ == "__main__":
    main()
