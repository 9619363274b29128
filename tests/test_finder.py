"""Tests for inctree.core.finder module."""

from __future__ import annotations

import os
from unittest import mock

from inctree.core.finder import (
    INCLUDE_ENV_VAR,
    _env_paths,
    candidate_base_dirs,
    source_directory,
)


class TestEnvPaths:
    """Tests for _env_paths helper."""

    def test_empty_env(self) -> None:
        with mock.patch.dict(os.environ, {"TEST_VAR": ""}, clear=False):
            assert _env_paths("TEST_VAR") == []

    def test_missing_env(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            assert _env_paths("DEFINITELY_NOT_SET_XYZ") == []

    def test_splits_and_drops_empty(self) -> None:
        value = os.pathsep.join(["/a", "", " /b ", ""])
        with mock.patch.dict(os.environ, {"TEST_VAR": value}, clear=False):
            assert _env_paths("TEST_VAR") == ["/a", "/b"]


class TestSourceDirectory:
    def test_with_directory(self) -> None:
        assert source_directory("src/main.cpp") == "src"

    def test_bare_file_name(self) -> None:
        assert source_directory("main.cpp") == os.curdir

    def test_windows_source(self) -> None:
        assert source_directory("C:\\proj\\main.cpp") == "C:\\proj"


class TestCandidateBaseDirs:
    """Tests for candidate_base_dirs."""

    def test_own_directory_first(self) -> None:
        with mock.patch.dict(os.environ, {INCLUDE_ENV_VAR: ""}, clear=False):
            dirs = candidate_base_dirs("src/main.cpp", ["inc", "third_party"])
        assert dirs == [
            "src",
            os.path.abspath("src"),
            "inc",
            os.path.abspath("inc"),
            "third_party",
            os.path.abspath("third_party"),
        ]

    def test_env_entries_last(self) -> None:
        value = os.pathsep.join(["/sdk/include", "/opt/inc"])
        with mock.patch.dict(os.environ, {INCLUDE_ENV_VAR: value}, clear=False):
            dirs = candidate_base_dirs("/proj/main.cpp", ["/proj/inc"])
        assert dirs == ["/proj", "/proj/inc", "/sdk/include", "/opt/inc"]

    def test_env_ignored(self) -> None:
        with mock.patch.dict(os.environ, {INCLUDE_ENV_VAR: "/sdk/include"}, clear=False):
            assert candidate_base_dirs(None, ["/inc"], env_var=None) == ["/inc"]

    def test_duplicates_removed_keeping_first(self) -> None:
        with mock.patch.dict(os.environ, {INCLUDE_ENV_VAR: "/src"}, clear=False):
            dirs = candidate_base_dirs("/inc/a.cpp", ["/inc", "/src"])
        assert dirs == ["/inc", "/src"]

    def test_absolute_dirs_not_doubled(self) -> None:
        dirs = candidate_base_dirs("C:\\proj\\main.cpp", ["C:\\proj\\inc"], env_var=None)
        assert dirs == ["C:\\proj", "C:\\proj\\inc"]

    def test_bare_source_adds_working_directory(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        dirs = candidate_base_dirs("main.cpp", ["inc"], env_var=None)
        cwd = os.getcwd()
        assert dirs == [os.curdir, cwd, "inc", os.path.join(cwd, "inc")]

    def test_relative_duplicate_of_absolute(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        inc = os.path.join(os.getcwd(), "inc")
        dirs = candidate_base_dirs(None, [inc, "inc"], env_var=None)
        assert dirs == [inc, "inc"]

    def test_nothing(self) -> None:
        assert candidate_base_dirs(env_var=None) == []
