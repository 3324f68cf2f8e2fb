"""Tests for config path discovery, TOML loading, validation and saving."""

import tomllib

from workspacer.config_loader import (
    CONFIG_PATH_ENV,
    get_config_path,
    load_config,
    render_config,
    save_config,
    toml_string,
)
from workspacer.errors import ErrorType
from workspacer.models import Config, DirectoryRoot, GroupWorkspace, LeafWorkspace, Tab

SAMPLE = """
[launcher]
executable = "wt.exe"

[[workspaces]]
name = "code"
path = "/home/me/code"

[[workspace]]
name = "web"

[[workspace.tab]]
title = "server"
starting_directory = "/srv/web"
commands = ["npm run dev"]

[[workspace.tab]]
starting_directory = "/srv/web"
split_pane = true

[[workspace]]
name = "all"
group = ["web"]
"""


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestGetConfigPath:
    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv(CONFIG_PATH_ENV, str(tmp_path / "custom.toml"))
        assert get_config_path() == tmp_path / "custom.toml"

    def test_default_lives_in_workspacer_dir(self, monkeypatch):
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        path = get_config_path()
        assert path.name == "config.toml"
        assert path.parent.name == "Workspacer"


class TestLoadConfig:
    def test_full_document(self, config_path):
        result = load_config(write(config_path, SAMPLE))
        assert result.is_ok()
        config = result.value
        assert config.executable == "wt.exe"
        assert config.roots == [DirectoryRoot(name="code", path="/home/me/code")]
        assert config.workspaces == [
            LeafWorkspace(name="web", tabs=(
                Tab(starting_directory="/srv/web", title="server", commands=("npm run dev",)),
                Tab(starting_directory="/srv/web", split_pane=True),
            )),
            GroupWorkspace(name="all", members=("web",)),
        ]

    def test_simple_mode_only(self, config_path):
        text = '[[workspaces]]\nname = ""\npath = "/data"\n'
        config = load_config(write(config_path, text)).value
        assert config.roots == [DirectoryRoot(name="", path="/data")]
        assert config.workspaces == []
        assert config.executable == "wt"

    def test_missing_file(self, config_path):
        result = load_config(config_path)
        assert result.error.error_type is ErrorType.CONFIG_MISSING

    def test_invalid_toml_reports_line(self, config_path):
        result = load_config(write(config_path, '[[workspace]]\nname = = "x"\n'))
        assert result.error.error_type is ErrorType.CONFIG_PARSE_ERROR
        assert result.error.context["line_number"] == 2

    def test_workspace_with_tab_and_group(self, config_path):
        text = '[[workspace]]\nname = "x"\ngroup = ["y"]\n[[workspace.tab]]\nstarting_directory = "/"\n'
        result = load_config(write(config_path, text))
        assert result.error.error_type is ErrorType.CONFIG_PARSE_ERROR
        assert result.error.context["workspace"] == "x"

    def test_workspace_with_neither_shape(self, config_path):
        result = load_config(write(config_path, '[[workspace]]\nname = "x"\n'))
        assert result.error.error_type is ErrorType.CONFIG_PARSE_ERROR

    def test_tab_without_starting_directory(self, config_path):
        text = '[[workspace]]\nname = "x"\n[[workspace.tab]]\ntitle = "t"\n'
        result = load_config(write(config_path, text))
        assert result.error.error_type is ErrorType.CONFIG_PARSE_ERROR
        assert result.error.context["tab_index"] == 0

    def test_wrong_split_pane_type(self, config_path):
        text = '[[workspace]]\nname = "x"\n[[workspace.tab]]\nstarting_directory = "/"\nsplit_pane = "yes"\n'
        result = load_config(write(config_path, text))
        assert result.error.error_type is ErrorType.CONFIG_PARSE_ERROR

    def test_duplicate_names_are_rejected(self, config_path):
        text = (
            '[[workspace]]\nname = "Dev"\ngroup = []\n'
            '[[workspace]]\nname = "dev"\ngroup = []\n'
        )
        result = load_config(write(config_path, text))
        assert result.error.error_type is ErrorType.VALIDATION_ERROR
        assert result.error.context["duplicates"] == ["dev"]


class TestSaveConfig:
    def test_saved_config_loads_back(self, config_path):
        config = Config(
            roots=[DirectoryRoot(name="default", path="C:\\Users\\me\\src")],
            workspaces=[
                LeafWorkspace(name='say "hi"', tabs=(
                    Tab(starting_directory="~/x", title="one", commands=("echo a", "echo b")),
                    Tab(starting_directory="~/y", split_pane=True),
                )),
                LeafWorkspace(name="bare"),
                GroupWorkspace(name="both", members=('say "hi"', "bare")),
            ],
            executable="wt.exe",
        )
        assert save_config(config, config_path).is_ok()
        assert load_config(config_path).value == config

    def test_render_is_valid_toml(self):
        text = render_config(Config(roots=[DirectoryRoot(name="r", path="/r")]))
        assert tomllib.loads(text) == {"workspaces": [{"name": "r", "path": "/r"}]}

    def test_default_executable_is_not_written(self):
        assert "[launcher]" not in render_config(Config())

    def test_save_failure_is_io_error(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        result = save_config(Config(), blocker / "config.toml")
        assert result.error.error_type is ErrorType.IO_ERROR


class TestTomlString:
    def test_escapes_quotes_and_backslashes(self):
        value = 'a "quoted" C:\\path'
        assert tomllib.loads(f"v = {toml_string(value)}")["v"] == value

    def test_escapes_control_characters(self):
        value = "tab\there\nnewline\x7f"
        assert tomllib.loads(f"v = {toml_string(value)}")["v"] == value
