# =============================================================================
# Tab and Pane Launch
# =============================================================================
# Turns resolved directives into Windows Terminal arguments and hands them
# to a command executor. Every value is passed as its own argument token;
# nothing is quoted or re-split here.

import subprocess
import time
from uuid import uuid4

from loguru import logger

from workspacer.errors import Error, ErrorType, Result
from workspacer.models import DEFAULT_EXECUTABLE, LaunchDirective
from workspacer.tab_utils import get_tab_display_name

SEPARATOR = ";"
NEW_TAB = "new-tab"
SPLIT_PANE = "split-pane"
TITLE_FLAG = "--title"
STARTING_DIRECTORY_FLAG = "--startingDirectory"


def build_launch_args(directives: list[LaunchDirective]) -> list[str]:
    """
    Build the executor argument tokens for a sequence of directives.

    Every directive after the first is introduced by the separator and a
    mode token (split-pane or new-tab).
    """
    args: list[str] = []
    for directive in directives:
        if not directive.is_first_overall:
            args.append(SEPARATOR)
            args.append(SPLIT_PANE if directive.split_pane else NEW_TAB)
        if directive.title is not None:
            args.extend([TITLE_FLAG, directive.title])
        args.extend([STARTING_DIRECTORY_FLAG, directive.starting_directory])
        if directive.commands:
            args.extend(directive.commands)
    return args


class SubprocessExecutor:
    """Command executor that spawns the terminal with subprocess."""

    def __init__(self, executable: str = DEFAULT_EXECUTABLE, timeout: float | None = None):
        self.executable = executable
        self.timeout = timeout

    def __call__(self, args: list[str]) -> int:
        """
        Run the executable with args and return its exit status.

        Raises:
            OSError: If the process cannot be spawned
            subprocess.TimeoutExpired: If a timeout was given and the process
                does not exit within it
        """
        completed = subprocess.run(
            [self.executable, *args],
            timeout=self.timeout,
            check=False
        )
        return completed.returncode


def launch_workspace(directives: list[LaunchDirective], executor) -> Result[list[str]]:
    """
    Build arguments for directives and run them through executor.

    Args:
        directives: Resolved directives, first one marked is_first_overall
        executor: Callable taking the argument list, returning an exit status

    Returns:
        Result with the argument tokens used, or LAUNCH_FAILURE
    """
    op_trace_id = str(uuid4())
    start_time = time.perf_counter()
    args = build_launch_args(directives)

    logger.info(
        "Launching workspace",
        operation="launch_workspace",
        status="started",
        trace_id=op_trace_id,
        tabs=[get_tab_display_name(d) for d in directives],
        metrics={"directive_count": len(directives), "arg_count": len(args)}
    )

    try:
        exit_status = executor(args)
    except (OSError, subprocess.SubprocessError) as e:
        logger.error(
            "Launch command could not be run",
            operation="launch_workspace",
            status="failed",
            trace_id=op_trace_id,
            error=str(e),
            error_type=type(e).__name__
        )
        return Result.err(Error(
            error_type=ErrorType.LAUNCH_FAILURE,
            message=f"Could not run launch command: {e}",
            context={"args": args},
            original_exception=e
        ))

    duration_ms = int((time.perf_counter() - start_time) * 1000)
    if exit_status != 0:
        logger.error(
            "Launch command failed",
            operation="launch_workspace",
            status="failed",
            trace_id=op_trace_id,
            exit_status=exit_status,
            metrics={"duration_ms": duration_ms}
        )
        return Result.err(Error(
            error_type=ErrorType.LAUNCH_FAILURE,
            message=f"Launch command exited with status {exit_status}",
            context={"args": args, "exit_status": exit_status}
        ))

    logger.info(
        "Workspace launched",
        operation="launch_workspace",
        status="success",
        trace_id=op_trace_id,
        metrics={"duration_ms": duration_ms}
    )
    return Result.ok(args)
