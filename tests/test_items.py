"""Tests for item filtering and the directory and workspace sources."""

import os

import pytest
from loguru import logger

from workspacer.items import directory_source, filter_items, list_directories, workspace_source
from workspacer.models import Config, GroupWorkspace, LeafWorkspace, Tab
from workspacer.tab_utils import get_tab_display_name, shorten_home


class TestFilterItems:
    def test_empty_filter_keeps_everything(self):
        assert filter_items(["b", "a", "c"], "") == ["b", "a", "c"]

    def test_prefix_match_keeps_source_order(self):
        labels = ["alphabet", "beta", "Alpha", "gamma"]
        assert filter_items(labels, "alph") == ["alphabet", "Alpha"]

    def test_match_is_case_insensitive(self):
        assert filter_items(["README", "readme.md"], "ReAd") == ["README", "readme.md"]

    def test_substring_is_not_a_match(self):
        assert filter_items(["myproject"], "project") == []


class TestListDirectories:
    def test_only_directories_are_listed(self, tmp_path):
        (tmp_path / "one").mkdir()
        (tmp_path / "two").mkdir()
        (tmp_path / "file.txt").write_text("")
        assert sorted(list_directories(tmp_path)) == ["one", "two"]

    def test_order_follows_directory_entries(self, tmp_path):
        for name in ("c", "a", "b"):
            (tmp_path / name).mkdir()
        expected = [entry.name for entry in os.scandir(tmp_path)]
        assert list_directories(tmp_path) == expected

    def test_unreadable_entry_is_skipped_and_logged(self, tmp_path, monkeypatch):
        class Entry:
            def __init__(self, name, is_dir=True, error=None):
                self.name = name
                self._is_dir = is_dir
                self._error = error

            def is_dir(self):
                if self._error:
                    raise self._error
                return self._is_dir

        class Listing:
            def __init__(self, entries):
                self.entries = entries

            def __enter__(self):
                return iter(self.entries)

            def __exit__(self, *exc):
                return False

        entries = [
            Entry("first"),
            Entry("locked", error=PermissionError("denied")),
            Entry("notes.txt", is_dir=False),
            Entry("last"),
        ]
        monkeypatch.setattr(os, "scandir", lambda root: Listing(entries))
        records = []
        handler_id = logger.add(records.append, level="WARNING", format="{message}")
        try:
            names = list_directories(tmp_path)
        finally:
            logger.remove(handler_id)

        assert names == ["first", "last"]
        assert len(records) == 1
        record = records[0].record
        assert record["level"].name == "WARNING"
        assert record["extra"]["entry"] == "locked"

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            list_directories(tmp_path / "missing")

    def test_directory_source_relists_each_call(self, tmp_path):
        source = directory_source(tmp_path)
        assert source("") == []
        (tmp_path / "later").mkdir()
        assert source("la") == ["later"]


class TestWorkspaceSource:
    def test_names_in_declaration_order(self):
        config = Config(workspaces=[
            LeafWorkspace(name="zeta"),
            GroupWorkspace(name="alpha", members=("zeta",)),
            LeafWorkspace(name="Zulu"),
        ])
        source = workspace_source(config)
        assert source("") == ["zeta", "alpha", "Zulu"]
        assert source("z") == ["zeta", "Zulu"]


class TestTabDisplay:
    def test_title_wins(self):
        assert get_tab_display_name(Tab(starting_directory="/srv/web", title="server")) == "server"

    def test_falls_back_to_directory_name(self):
        assert get_tab_display_name(Tab(starting_directory="/srv/web/")) == "web"

    def test_shorten_home(self):
        home = os.path.expanduser("~")
        assert shorten_home(os.path.join(home, "src")) == os.path.join("~", "src")
