# =============================================================================
# Workspace Resolver
# =============================================================================
# Expands a workspace name into launch directives. Groups are expanded
# depth-first, left to right; the names on the current recursion path are
# tracked so a group that reaches itself fails instead of recursing forever.

from dataclasses import replace

from loguru import logger

from workspacer.errors import Error, ErrorType, Result
from workspacer.models import Config, LaunchDirective, LeafWorkspace
from workspacer.tab_utils import get_tab_display_name


class ResolveError(Exception):
    def __init__(self, error: Error):
        super().__init__(error.message)
        self.error = error


def _leaf_directives(leaf: LeafWorkspace) -> list[LaunchDirective]:
    return [
        LaunchDirective(
            starting_directory=tab.starting_directory,
            title=tab.title,
            commands=tab.commands,
            split_pane=tab.split_pane,
        )
        for tab in leaf.tabs
    ]


def _expand(config: Config, top_name: str, name: str, path: list[str]) -> list[LaunchDirective]:
    workspace = config.find_workspace(name)
    if workspace is None:
        if not path:
            raise ResolveError(Error(
                error_type=ErrorType.NOT_FOUND,
                message=f"No workspace named '{name}'",
                context={"workspace": name}
            ))
        raise ResolveError(Error(
            error_type=ErrorType.NOT_FOUND,
            message=f"Workspace '{top_name}' references unknown workspace '{name}' (via {' -> '.join(path)})",
            context={"workspace": top_name, "member": name, "path": list(path)}
        ))

    if workspace.name.lower() in (entry.lower() for entry in path):
        cycle = [*path, workspace.name]
        raise ResolveError(Error(
            error_type=ErrorType.CYCLIC_REFERENCE,
            message=f"Workspace group cycle: {' -> '.join(cycle)}",
            context={"workspace": top_name, "cycle": cycle}
        ))

    if isinstance(workspace, LeafWorkspace):
        return _leaf_directives(workspace)

    directives: list[LaunchDirective] = []
    path.append(workspace.name)
    for member in workspace.members:
        directives.extend(_expand(config, top_name, member, path))
    path.pop()
    return directives


def resolve(config: Config, name: str) -> Result[list[LaunchDirective]]:
    """
    Resolve a workspace name into an ordered list of launch directives.

    Only the very first directive of the whole sequence is marked
    is_first_overall.

    Returns:
        Result with the directives, or NOT_FOUND / CYCLIC_REFERENCE errors
    """
    try:
        directives = _expand(config, name, name, [])
    except ResolveError as e:
        logger.error(
            "Workspace resolution failed",
            operation="resolve",
            status="failed",
            workspace=name,
            error_type=e.error.error_type.value,
            error=e.error.message
        )
        return Result.err(e.error)

    if directives:
        directives[0] = replace(directives[0], is_first_overall=True)

    logger.debug(
        "Workspace resolved",
        operation="resolve",
        status="success",
        workspace=name,
        tabs=[get_tab_display_name(d) for d in directives],
        metrics={"directive_count": len(directives)}
    )
    return Result.ok(directives)
