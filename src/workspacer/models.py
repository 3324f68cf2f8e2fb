# =============================================================================
# Workspace Data Model
# =============================================================================
# Leaf and group workspaces are told apart structurally in the config
# document (a `tab` list vs a `group` list); here they are two dataclasses.

from dataclasses import dataclass, field

DEFAULT_EXECUTABLE = "wt"


@dataclass(frozen=True)
class Tab:
    starting_directory: str
    title: str | None = None
    commands: tuple[str, ...] | None = None
    split_pane: bool = False


@dataclass(frozen=True)
class LeafWorkspace:
    name: str
    tabs: tuple[Tab, ...] = ()


@dataclass(frozen=True)
class GroupWorkspace:
    name: str
    members: tuple[str, ...] = ()


Workspace = LeafWorkspace | GroupWorkspace


@dataclass(frozen=True)
class DirectoryRoot:
    """A browsable directory from the simple `[[workspaces]]` table."""

    name: str
    path: str


@dataclass
class Config:
    roots: list[DirectoryRoot] = field(default_factory=list)
    workspaces: list[Workspace] = field(default_factory=list)
    executable: str = DEFAULT_EXECUTABLE

    def workspace_names(self) -> list[str]:
        return [workspace.name for workspace in self.workspaces]

    def find_workspace(self, name: str) -> Workspace | None:
        """Case-insensitive exact lookup."""
        wanted = name.lower()
        for workspace in self.workspaces:
            if workspace.name.lower() == wanted:
                return workspace
        return None

    def find_root(self, name: str | None = None) -> DirectoryRoot | None:
        """Named root (case-insensitive), or the first one when no name is given."""
        if not self.roots:
            return None
        if name is None:
            return self.roots[0]
        wanted = name.lower()
        for root in self.roots:
            if root.name.lower() == wanted:
                return root
        return None


@dataclass(frozen=True)
class LaunchDirective:
    starting_directory: str
    title: str | None = None
    commands: tuple[str, ...] | None = None
    split_pane: bool = False
    is_first_overall: bool = False
