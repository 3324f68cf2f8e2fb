"""
Workspacer
Interactive directory picker and workspace launcher for Windows Terminal.

Configuration: <user config dir>/Workspacer/config.toml

Features:
- Incremental-render terminal picker with prefix filtering
- Named workspaces of tabs and split panes, composable via groups
- Structured JSONL logging (machine-readable)
- First-run setup and interactive workspace creation
"""

__version__ = "0.1.0"
